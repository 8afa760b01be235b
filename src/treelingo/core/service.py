"""Store-backed translation operations."""

import copy
import logging
from typing import Any, Iterable, Optional

from treelingo.core.media import collect_media_fields, merge_media_field_keys, replace_media_fields
from treelingo.core.references import ReferenceResolver
from treelingo.core.translator import DocumentTranslator, TranslationResult, TranslationStats
from treelingo.exceptions import DocumentNotFoundError
from treelingo.store.base import DocumentStore

SYSTEM_FIELDS = frozenset(
    {
        "_id",
        "language",
        "_rev",
        "__i18n_lang",
        "__i18n_refs",
        "_originalId",
        "_translations",
        "metadata",
        "_createdAt",
        "_updatedAt",
    }
)


def strip_system_fields(document: dict[str, Any]) -> dict[str, Any]:
    """Return the fields of ``document`` that may be written back to the store."""
    return {key: value for key, value in document.items() if key not in SYSTEM_FIELDS}


class TranslationService:
    """Translate, repair and synchronise documents held in a store."""

    def __init__(
        self,
        store: DocumentStore,
        translator: Optional[DocumentTranslator],
        resolver: Optional[ReferenceResolver] = None,
        media_keys: Optional[Iterable[str]] = None,
    ):
        """
        Initialize service.

        Args:
            store: Where documents are read from and patched
            translator: Engine used for the translation itself (None when
                only references are fixed)
            resolver: Reference resolver (built over ``store`` when None)
            media_keys: Media field names copied by :meth:`sync_media`
                (defaults when None)
        """
        self.store = store
        self.translator = translator
        self.resolver = resolver or ReferenceResolver(store)
        self.media_keys = list(media_keys) if media_keys is not None else merge_media_field_keys()
        self.logger = logging.getLogger("treelingo.service")

    async def translate_document(self, doc_id: str) -> TranslationResult:
        """
        Translate a document into its own ``language`` and patch it.

        The document's text is assumed to be in another language (typically
        a freshly duplicated version); references are repointed first.
        """
        document = await self.store.fetch_by_id(doc_id)
        if not document:
            return TranslationResult(is_translated=False, message="No document data found")
        language = document.get("language")
        if not language:
            return TranslationResult(is_translated=False, document=document, message="No language found")

        result = await self.translator.translate(document, language, resolver=self.resolver)
        await self.store.patch(doc_id, strip_system_fields(result.document))
        self.logger.info(f"Translated {doc_id} to {language}: {result.message}")
        return result

    async def fix_references(self, doc_id: str) -> TranslationResult:
        """Repoint a document's references to its language without translating text."""
        document = await self.store.fetch_by_id(doc_id)
        if not document:
            return TranslationResult(is_translated=False, message="No document data found")
        language = document.get("language")
        if not language:
            return TranslationResult(is_translated=False, message="No language found")

        working = copy.deepcopy(document)
        resolved = await self.resolver.resolve(working, language)
        await self.store.patch(doc_id, strip_system_fields(working))
        return TranslationResult(
            is_translated=False,
            document=working,
            message=f"Fixed {resolved} references",
            stats=TranslationStats(references_resolved=resolved),
        )

    async def _patch_target(self, doc_id: str) -> str:
        """Return the id a language version's changes should be written to."""
        sibling = await self.store.fetch_by_id(doc_id)
        if sibling and sibling.get("_originalId"):
            return sibling["_originalId"]
        return doc_id

    async def sync_documents(self, doc_id: str) -> dict[str, TranslationResult]:
        """
        Push the source document's content to every other language version.

        Each sibling gets a fresh copy of the source translated into the
        sibling's language. A failing sibling is logged and skipped.

        Returns:
            Results keyed by sibling id
        """
        source = await self.store.fetch_by_id(doc_id)
        if not source:
            self.logger.warning(f"Document {doc_id} not found, nothing to sync")
            return {}

        results: dict[str, TranslationResult] = {}
        for link in await self.store.find_translations(doc_id):
            if link.id == doc_id or not link.language:
                continue
            try:
                result = await self.translator.translate(source, link.language, resolver=self.resolver)
                target = await self._patch_target(link.id)
                await self.store.patch(target, strip_system_fields(result.document))
            except Exception as e:
                self.logger.error(f"Failed to sync {link.id} ({link.language}): {e}")
                results[link.id] = TranslationResult(is_translated=False, message=str(e))
                continue
            results[link.id] = result
            self.logger.info(f"Synced {doc_id} -> {target} ({link.language})")

        return results

    async def sync_media(self, doc_id: str) -> dict[str, TranslationResult]:
        """
        Copy the source document's media fields to every other language version.

        Nothing is translated. A failing sibling is logged and skipped.

        Returns:
            Results keyed by sibling id, with ``stats.media_copied`` set
        """
        source = await self.store.fetch_by_id(doc_id)
        if not source:
            self.logger.warning(f"Document {doc_id} not found, no media to sync")
            return {}

        media = collect_media_fields(source, self.media_keys)
        self.logger.debug(f"Found {len(media)} media fields in {doc_id}")

        results: dict[str, TranslationResult] = {}
        for link in await self.store.find_translations(doc_id):
            if link.id == doc_id:
                continue
            try:
                sibling = await self.store.fetch_by_id(link.id)
                if not sibling:
                    raise DocumentNotFoundError(link.id)
                updated, copied = replace_media_fields(media, sibling)
                target = sibling.get("_originalId") or link.id
                await self.store.patch(target, strip_system_fields(updated))
            except Exception as e:
                self.logger.error(f"Failed to sync media to {link.id}: {e}")
                results[link.id] = TranslationResult(is_translated=False, message=str(e))
                continue
            results[link.id] = TranslationResult(
                is_translated=False,
                document=updated,
                message=f"Copied {copied} media fields",
                stats=TranslationStats(media_copied=copied),
            )
            self.logger.info(f"Copied {copied} media fields {doc_id} -> {target}")

        return results
