"""Write translations back into a document tree in place."""

import logging
from typing import Any, Optional

from treelingo.core.blocks import is_rich_text_array, is_text_block, is_valid_span
from treelingo.core.collector import CollectedFields
from treelingo.core.markup import markup_to_block
from treelingo.core.walker import is_container, iter_children, join_path

logger = logging.getLogger("treelingo.rewriter")


def apply_text_to_spans(block: dict[str, Any], translation: str) -> None:
    """
    Put a plain translation into a block's spans.

    A single span keeps its marks. With several spans the whole translation
    goes into the first one, which loses its marks, and the others are
    emptied: span boundaries cannot be recovered from plain text.
    """
    spans = [child for child in block.get("children") or [] if is_valid_span(child)]
    if not spans:
        return
    spans[0]["text"] = translation
    if len(spans) > 1:
        spans[0]["marks"] = []
        for span in spans[1:]:
            span["text"] = ""
            span["marks"] = []


class TreeRewriter:
    """Mirror of the collector's traversal that writes instead of collecting."""

    def __init__(self, collected: CollectedFields):
        """
        Initialize rewriter.

        Args:
            collected: Result of the collection pass over the same tree
        """
        self.collected = collected
        self.applied = 0

    def apply(
        self,
        node: Any,
        translations: dict[str, str],
        array_translations: Optional[dict[str, list[str]]] = None,
        path: str = "",
    ) -> Any:
        """
        Apply translations to ``node`` in place.

        Paths missing from the maps keep their original values.

        Args:
            node: Tree collected earlier (or an identical copy of it)
            translations: Path or block id -> translated text
            array_translations: Path -> translated strings for array fields
            path: Path prefix of ``node``

        Returns:
            The same ``node``, modified
        """
        if is_container(node):
            self._apply(node, translations, array_translations or {}, path)
        return node

    def _apply(
        self,
        node: Any,
        translations: dict[str, str],
        array_translations: dict[str, list[str]],
        path: str,
    ) -> None:
        for key, value in list(iter_children(node)):
            child_path = join_path(path, key)

            if is_rich_text_array(value):
                self._apply_rich_text(value, child_path, translations)
                for index, block in enumerate(value):
                    if not is_text_block(block) and is_container(block):
                        self._apply(block, translations, array_translations, join_path(child_path, index))
            elif isinstance(value, list) and child_path in array_translations:
                node[key] = self._merge_array(value, array_translations[child_path])
                self.applied += 1
            elif is_container(value):
                self._apply(value, translations, array_translations, child_path)
            elif isinstance(value, str) and child_path in translations:
                node[key] = translations[child_path]
                self.applied += 1

    def _apply_rich_text(self, blocks: list[Any], array_path: str, translations: dict[str, str]) -> None:
        for block_id, location in self.collected.blocks_in(array_path).items():
            translation = translations.get(block_id)
            if translation is None:
                continue
            index = location.block_index
            if index >= len(blocks) or not is_text_block(blocks[index]):
                logger.warning(f"Block {index} of {array_path} moved since collection, skipping")
                continue

            if location.is_markup:
                blocks[index] = markup_to_block(translation, blocks[index])
            else:
                apply_text_to_spans(blocks[index], translation)
            self.applied += 1

    @staticmethod
    def _merge_array(original: list[Any], translated: list[str]) -> list[Any]:
        """Replace the non-blank strings of ``original`` in order, keeping everything else."""
        remaining = iter(translated)

        def merge(items: list[Any]) -> list[Any]:
            merged = []
            for item in items:
                if isinstance(item, list):
                    merged.append(merge(item))
                elif isinstance(item, str) and item.strip():
                    merged.append(next(remaining, item))
                else:
                    merged.append(item)
            return merged

        return merge(original)
