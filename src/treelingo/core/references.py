"""Repoint cross-document references at their translated counterparts."""

import asyncio
import logging
from typing import Any, Awaitable, Iterable, Optional, TypeVar

from treelingo.core.walker import walk_nodes
from treelingo.store.base import DocumentStore

logger = logging.getLogger("treelingo.references")

REFERENCE_TYPE = "reference"
REF_FIELD = "_ref"
DEFAULT_CONCURRENCY = 3

T = TypeVar("T")


async def gather_in_chunks(
    awaitables: Iterable[Awaitable[T]],
    chunk_size: int,
) -> list[Any]:
    """
    Await awaitables at most ``chunk_size`` at a time.

    Every chunk is settled before the next starts. Exceptions are returned
    in place of results rather than raised.
    """
    pending = list(awaitables)
    results: list[Any] = []
    for start in range(0, len(pending), chunk_size):
        chunk = pending[start : start + chunk_size]
        results.extend(await asyncio.gather(*chunk, return_exceptions=True))
    return results


def find_reference_ids(tree: Any) -> list[str]:
    """Return the distinct ``_ref`` ids of all reference objects, in document order."""
    ids: dict[str, None] = {}
    for _, node in walk_nodes(tree):
        if isinstance(node, dict) and node.get("_type") == REFERENCE_TYPE:
            ref = node.get(REF_FIELD)
            if isinstance(ref, str) and ref:
                ids.setdefault(ref, None)
    return list(ids)


def replace_ref_id(tree: Any, original_id: str, new_id: str) -> int:
    """
    Point every ``_ref`` equal to ``original_id`` at ``new_id``.

    Returns:
        Number of references changed
    """
    changed = 0
    for _, node in walk_nodes(tree):
        if isinstance(node, dict) and node.get(REF_FIELD) == original_id:
            node[REF_FIELD] = new_id
            changed += 1
    return changed


class ReferenceResolver:
    """Resolve references to the documents translated into a given language."""

    def __init__(self, store: DocumentStore, concurrency: int = DEFAULT_CONCURRENCY):
        """
        Initialize resolver.

        Args:
            store: Document store used for translation lookups
            concurrency: Maximum lookups in flight at once
        """
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        self.store = store
        self.concurrency = concurrency

    async def find_translated_id(self, ref_id: str, language: str) -> Optional[str]:
        """Return the id of ``ref_id``'s translation in ``language``, if any."""
        for translation in await self.store.find_translations(ref_id):
            if translation.language == language and translation.id != ref_id:
                return translation.id
        return None

    async def resolve(self, tree: Any, language: str) -> int:
        """
        Repoint references in ``tree`` (in place) to their ``language`` versions.

        Lookups run with bounded concurrency and are all settled before any
        replacement. A failed lookup leaves its reference untouched.

        Args:
            tree: Document to modify
            language: Language whose versions the references should target

        Returns:
            Number of distinct references repointed
        """
        ref_ids = find_reference_ids(tree)
        if not ref_ids:
            return 0

        results = await gather_in_chunks(
            (self.find_translated_id(ref_id, language) for ref_id in ref_ids),
            self.concurrency,
        )

        resolved = 0
        for ref_id, result in zip(ref_ids, results):
            if isinstance(result, Exception):
                logger.warning(f"Could not resolve reference {ref_id}: {result}")
                continue
            if result is None:
                logger.debug(f"No {language} version of {ref_id}, keeping reference")
                continue
            replace_ref_id(tree, ref_id, result)
            resolved += 1

        logger.info(f"Resolved {resolved}/{len(ref_ids)} references to {language}")
        return resolved
