"""Document translator: collect, translate and rewrite a content tree.

Key design principles:
1. Never mutate the caller's document - work on a deep copy
2. Only translatable leaves change; structure, order and other fields stay
3. Provider failures degrade to partially translated output, never to lost content
4. Collection state is per run, so concurrent runs do not interfere
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from treelingo.config import TreeLingoConfig
from treelingo.core.batcher import DEFAULT_BATCH_SIZE, BatchTranslator
from treelingo.core.collector import CollectedFields, FieldCollector
from treelingo.core.fields import FieldKey, merge_array_field_keys, merge_field_keys
from treelingo.core.references import ReferenceResolver
from treelingo.core.rewriter import TreeRewriter
from treelingo.exceptions import ValidationError
from treelingo.providers.base import TranslationProvider


@dataclass
class TranslationStats:
    """Counts describing one translation run."""

    fields: int = 0
    array_fields: int = 0
    blocks: int = 0
    batches: int = 0
    failed_batches: int = 0
    untranslated: int = 0
    applied: int = 0
    references_resolved: int = 0
    media_copied: int = 0

    @property
    def is_partial(self) -> bool:
        return self.untranslated > 0


@dataclass
class TranslationResult:
    """Outcome of a translation operation."""

    is_translated: bool
    document: Optional[dict[str, Any]] = None
    message: str = ""
    stats: TranslationStats = field(default_factory=TranslationStats)


class DocumentTranslator:
    """Translate structured documents while preserving their shape."""

    def __init__(
        self,
        provider: TranslationProvider,
        field_keys: Optional[Iterable[FieldKey]] = None,
        array_field_keys: Optional[Iterable[str]] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize translator.

        Args:
            provider: Translation capability
            field_keys: Translatable field keys (defaults when None)
            array_field_keys: Whole-array translatable field names
            batch_size: Texts per provider request
        """
        self.provider = provider
        self.collector = FieldCollector(field_keys, array_field_keys)
        self.batcher = BatchTranslator(provider, batch_size=batch_size)
        self.logger = logging.getLogger("treelingo.translator")

    @classmethod
    def from_config(cls, config: TreeLingoConfig, provider: TranslationProvider) -> "DocumentTranslator":
        """Build a translator with field keys merged from configuration."""
        return cls(
            provider,
            field_keys=merge_field_keys(config.custom_field_keys, config.exclude_field_keys),
            array_field_keys=merge_array_field_keys(
                config.custom_array_field_keys, config.exclude_array_field_keys
            ),
            batch_size=config.batch_size,
        )

    def collect(self, document: dict[str, Any]) -> CollectedFields:
        """Collect translatable content without translating (dry run)."""
        return self.collector.collect(document)

    async def translate(
        self,
        document: dict[str, Any],
        target_language: str,
        resolver: Optional[ReferenceResolver] = None,
    ) -> TranslationResult:
        """
        Translate a document.

        Args:
            document: Source document; left untouched
            target_language: Target language code
            resolver: Optional resolver repointing references to
                ``target_language`` versions before translating

        Returns:
            Result holding the translated copy. Partial provider failures
            still count as translated; see ``stats.untranslated``.

        Raises:
            ValidationError: If the document is empty or the language missing
        """
        if not isinstance(document, dict) or not document:
            raise ValidationError("No document data found")
        if not target_language:
            raise ValidationError("No language found")

        working = copy.deepcopy(document)
        stats = TranslationStats()

        if resolver is not None:
            stats.references_resolved = await resolver.resolve(working, target_language)

        collected = self.collector.collect(working)
        stats.fields = len(collected.fields)
        stats.array_fields = len(collected.array_fields)
        stats.blocks = len(collected.blocks)
        self.logger.info(
            f"Translating {stats.fields} fields ({stats.blocks} rich-text blocks) and "
            f"{stats.array_fields} array fields to {target_language}"
        )

        if not len(collected):
            self.logger.warning("No translatable content found")
            return TranslationResult(is_translated=True, document=working, message="Nothing to translate", stats=stats)

        outcome = await self.batcher.translate(collected.fields, collected.array_fields, target_language)
        stats.batches = outcome.batches
        stats.failed_batches = outcome.failed_batches
        stats.untranslated = len(outcome.failed_paths)

        rewriter = TreeRewriter(collected)
        rewriter.apply(working, outcome.translations, outcome.array_translations)
        stats.applied = rewriter.applied

        message = "Translated"
        if stats.is_partial:
            message = f"Partially translated: {stats.untranslated} items kept their original text"
            self.logger.warning(message)
        return TranslationResult(is_translated=True, document=working, message=message, stats=stats)
