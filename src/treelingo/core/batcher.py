"""Batch collected fields through a translation provider.

Items with context are sent one per request so each keeps its context;
the rest go in fixed-size chunks. Markup and plain text never share a
request because markup needs the provider's tag handling. Provider failures
are contained per batch: the affected paths are simply missing from the
resulting map and keep their original values.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from treelingo.core.collector import ArrayFieldToTranslate, FieldToTranslate
from treelingo.exceptions import TranslationError
from treelingo.providers.base import MARKUP_MODE_HTML, TranslationProvider

logger = logging.getLogger("treelingo.batcher")

DEFAULT_BATCH_SIZE = 50


@dataclass
class BatchOutcome:
    """Translations keyed by path plus bookkeeping for diagnostics."""

    translations: dict[str, str] = field(default_factory=dict)
    array_translations: dict[str, list[str]] = field(default_factory=dict)
    batches: int = 0
    failed_batches: int = 0
    failed_paths: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _PreparedText:
    """Provider-ready form of a plain source string."""

    leading: str
    core: str
    trailing: str
    all_caps: bool

    @property
    def request_text(self) -> str:
        # Providers tend to read all-caps words as acronyms.
        return self.core.lower() if self.all_caps else self.core

    def restore(self, translated: str) -> str:
        text = translated.strip()
        if self.all_caps:
            text = text.upper()
        return f"{self.leading}{text}{self.trailing}"


def prepare_text(text: str) -> _PreparedText:
    """Split off surrounding whitespace and detect all-caps source text."""
    core = text.strip()
    start = text.find(core) if core else len(text)
    return _PreparedText(
        leading=text[:start],
        core=core,
        trailing=text[start + len(core) :],
        all_caps=core.isupper(),
    )


def chunked(items: list, size: int) -> list[list]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchTranslator:
    """Drive a provider over collected fields and build the translation map."""

    def __init__(self, provider: TranslationProvider, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Initialize batch translator.

        Args:
            provider: Translation capability
            batch_size: Maximum texts per provider request
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.provider = provider
        self.batch_size = batch_size

    async def translate(
        self,
        fields: list[FieldToTranslate],
        array_fields: list[ArrayFieldToTranslate],
        target_language: str,
    ) -> BatchOutcome:
        """
        Translate all collected items.

        Args:
            fields: Single-string items
            array_fields: Whole-array items
            target_language: Target language code

        Returns:
            Outcome with ``path -> translation`` maps
        """
        outcome = BatchOutcome()

        with_context = [f for f in fields if f.context]
        without_context = [f for f in fields if not f.context]

        for markup in (False, True):
            group = [f for f in without_context if f.is_markup == markup]
            await self._translate_grouped(group, target_language, None, markup, outcome)

        # One request per distinct (text, context) pair.
        by_context: dict[tuple[str, bool], list[FieldToTranslate]] = {}
        for item in with_context:
            by_context.setdefault((item.context, item.is_markup), []).append(item)
        for (context, markup), group in by_context.items():
            await self._translate_grouped(group, target_language, context, markup, outcome, chunk_size=1)

        await self._translate_arrays(array_fields, target_language, outcome)

        logger.info(
            f"Translated {len(outcome.translations)}/{len(fields)} fields and "
            f"{len(outcome.array_translations)}/{len(array_fields)} array fields "
            f"in {outcome.batches} requests ({outcome.failed_batches} failed)"
        )
        return outcome

    async def _translate_grouped(
        self,
        items: list[FieldToTranslate],
        target_language: str,
        context: Optional[str],
        markup: bool,
        outcome: BatchOutcome,
        chunk_size: Optional[int] = None,
    ) -> None:
        """Translate items sharing context and mode, sending each distinct text once."""
        if not items:
            return

        paths_by_text: dict[str, list[str]] = {}
        for item in items:
            paths_by_text.setdefault(item.value, []).append(item.path)
        unique_texts = list(paths_by_text)

        for chunk in chunked(unique_texts, chunk_size or self.batch_size):
            translated = await self._send(chunk, target_language, context, markup, outcome)
            if translated is None:
                for text in chunk:
                    outcome.failed_paths.extend(paths_by_text[text])
                continue
            for text, result in zip(chunk, translated):
                for path in paths_by_text[text]:
                    outcome.translations[path] = result

    async def _translate_arrays(
        self,
        array_fields: list[ArrayFieldToTranslate],
        target_language: str,
        outcome: BatchOutcome,
    ) -> None:
        """Translate every array field's strings as one flat list, then split per field."""
        flat: list[str] = []
        spans: list[tuple[ArrayFieldToTranslate, int, int]] = []
        for array_field in array_fields:
            values = [v for v in array_field.value if v.strip()]
            spans.append((array_field, len(flat), len(flat) + len(values)))
            flat.extend(values)
        if not flat:
            return

        translated: list[str] = []
        for chunk in chunked(flat, self.batch_size):
            result = await self._send(chunk, target_language, None, False, outcome)
            if result is None:
                outcome.failed_paths.extend(f.path for f in array_fields)
                return
            translated.extend(result)

        for array_field, start, end in spans:
            outcome.array_translations[array_field.path] = translated[start:end]

    async def _send(
        self,
        texts: list[str],
        target_language: str,
        context: Optional[str],
        markup: bool,
        outcome: BatchOutcome,
    ) -> Optional[list[str]]:
        """Call the provider once; returns None when the batch failed."""
        outcome.batches += 1
        prepared = None if markup else [prepare_text(t) for t in texts]
        request = texts if prepared is None else [p.request_text for p in prepared]

        try:
            result = await self.provider.translate_batch(
                request,
                target_language,
                context=context,
                markup_mode=MARKUP_MODE_HTML if markup else None,
            )
            if len(result) != len(request):
                raise TranslationError(
                    f"Provider returned {len(result)} translations for {len(request)} texts"
                )
        except Exception as e:
            outcome.failed_batches += 1
            logger.error(f"Translation batch of {len(texts)} texts failed, keeping originals: {e}")
            return None

        if prepared is None:
            return list(result)
        return [p.restore(r) for p, r in zip(prepared, result)]
