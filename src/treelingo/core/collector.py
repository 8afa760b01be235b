"""Collect translatable strings and rich-text blocks from a document tree."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from treelingo.core.blocks import (
    block_text,
    describe_blocks,
    find_header_context,
    is_complex,
    is_rich_text_array,
    is_text_block,
)
from treelingo.core.fields import (
    FieldKey,
    is_translatable_key,
    merge_array_field_keys,
    merge_field_keys,
)
from treelingo.core.markup import block_to_markup
from treelingo.core.walker import is_container, iter_children, join_path, node_type

logger = logging.getLogger("treelingo.collector")


@dataclass
class FieldToTranslate:
    """A single string queued for translation.

    ``path`` is the dotted tree path for plain fields and a generated id for
    rich-text blocks (see :class:`BlockLocation`).
    """

    path: str
    value: str
    context: Optional[str] = None
    is_markup: bool = False


@dataclass
class ArrayFieldToTranslate:
    """A whole string array (e.g. ``keywords``) translated as one unit."""

    path: str
    value: list[str]


@dataclass
class BlockLocation:
    """Where a collected rich-text block lives in the tree."""

    field_name: str
    block_index: int
    array_path: str
    is_header: bool
    context: Optional[str] = None
    is_markup: bool = False


@dataclass
class CollectedFields:
    """Output of a collection pass, consumed again by the rewriter."""

    fields: list[FieldToTranslate] = field(default_factory=list)
    array_fields: list[ArrayFieldToTranslate] = field(default_factory=list)
    blocks: dict[str, BlockLocation] = field(default_factory=dict)

    def blocks_in(self, array_path: str) -> dict[str, BlockLocation]:
        """Return the block records whose array lives at ``array_path``."""
        return {block_id: loc for block_id, loc in self.blocks.items() if loc.array_path == array_path}

    def __len__(self) -> int:
        return len(self.fields) + len(self.array_fields)


def flatten_strings(value: Any) -> list[str]:
    """Flatten nested lists into their string elements."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [s for item in value for s in flatten_strings(item)]
    return []


class FieldCollector:
    """Walk a document and gather everything that needs translating."""

    def __init__(
        self,
        field_keys: Optional[Iterable[FieldKey]] = None,
        array_field_keys: Optional[Iterable[str]] = None,
    ):
        """
        Initialize collector.

        Args:
            field_keys: Ordered translatable field keys (defaults when None)
            array_field_keys: Names of whole-array translatable fields
        """
        self.field_keys = list(field_keys) if field_keys is not None else merge_field_keys()
        self.array_field_keys = (
            set(array_field_keys) if array_field_keys is not None else set(merge_array_field_keys())
        )

    def collect(self, node: Any, parent_type: Optional[str] = None, path: str = "") -> CollectedFields:
        """
        Collect translatable fields from a tree.

        Args:
            node: Document or sub-tree
            parent_type: ``_type`` of the enclosing object (defaults to the
                node's own ``_type``)
            path: Path prefix of ``node``

        Returns:
            Collected fields, array fields and rich-text block locations
        """
        result = CollectedFields()
        if not is_container(node):
            return result

        self._collect(node, node_type(node, parent_type), path, result)
        logger.debug(
            f"Collected {len(result.fields)} fields, {len(result.array_fields)} array fields, "
            f"{len(result.blocks)} rich-text blocks"
        )
        return result

    def _collect(self, node: Any, parent_type: Optional[str], path: str, result: CollectedFields) -> None:
        for key, value in iter_children(node):
            child_path = join_path(path, key)

            if is_rich_text_array(value):
                self._collect_rich_text(value, str(key), child_path, parent_type, result)
            elif isinstance(value, list) and key in self.array_field_keys:
                strings = flatten_strings(value)
                if any(s.strip() for s in strings):
                    result.array_fields.append(ArrayFieldToTranslate(path=child_path, value=strings))
            elif is_container(value):
                self._collect(value, node_type(value, parent_type), child_path, result)
            elif (
                isinstance(value, str)
                and value.strip()
                and isinstance(key, str)
                and is_translatable_key(key, parent_type, self.field_keys)
            ):
                result.fields.append(FieldToTranslate(path=child_path, value=value))

    def _collect_rich_text(
        self,
        blocks: list[Any],
        field_name: str,
        array_path: str,
        parent_type: Optional[str],
        result: CollectedFields,
    ) -> None:
        infos = describe_blocks(blocks)

        for index, block in enumerate(blocks):
            if not is_text_block(block):
                # Custom blocks keep their own field rules and may nest rich text.
                if is_container(block):
                    self._collect(
                        block, node_type(block, parent_type), join_path(array_path, index), result
                    )
                continue

            info = infos[index]
            if not info.text.strip():
                continue

            context = find_header_context(blocks, infos, index) if info.is_header else None
            markup = is_complex(block)
            value = block_to_markup(block) if markup else info.text
            if markup and value == block_text(block):
                # Encoding fell back to plain text; translate it as such.
                markup = False

            block_id = uuid.uuid4().hex
            result.fields.append(
                FieldToTranslate(path=block_id, value=value, context=context, is_markup=markup)
            )
            result.blocks[block_id] = BlockLocation(
                field_name=field_name,
                block_index=index,
                array_path=array_path,
                is_header=info.is_header,
                context=context,
                is_markup=markup,
            )
