"""Rich-text block detection, complexity classification and heading context.

Rich text is an array of blocks. A text block looks like::

    {"_type": "block", "_key": "a1", "style": "normal", "markDefs": [...],
     "children": [{"_type": "span", "_key": "s1", "text": "Hi", "marks": []}]}

Anything else in the array (``_type`` other than ``block``) is a custom block.
"""

from dataclasses import dataclass
from typing import Any, Optional

BLOCK_TYPE = "block"
SPAN_TYPE = "span"
HEADER_STYLES = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
NORMAL_STYLE = "normal"


def is_text_block(value: Any) -> bool:
    return isinstance(value, dict) and value.get("_type") == BLOCK_TYPE


def is_valid_span(child: Any) -> bool:
    """A span is valid when it is typed ``span`` and carries string text."""
    return isinstance(child, dict) and child.get("_type") == SPAN_TYPE and isinstance(
        child.get("text"), str
    )


def is_rich_text_array(value: Any) -> bool:
    """
    Check whether a value is rich-text content.

    True for a non-empty list holding at least one text block whose children
    include a valid span.
    """
    if not isinstance(value, list) or not value:
        return False
    return any(
        is_text_block(item)
        and isinstance(item.get("children"), list)
        and any(is_valid_span(child) for child in item["children"])
        for item in value
    )


def is_complex(block: Any) -> bool:
    """
    Check whether a block needs the markup round trip.

    A block is complex when it has mark definitions, any marked child, or
    more than one child. A single unmarked span translates as bare text.
    """
    if not is_text_block(block) or not isinstance(block.get("children"), list):
        return False
    children = block["children"]
    has_marks = any(isinstance(child, dict) and child.get("marks") for child in children)
    return bool(block.get("markDefs")) or has_marks or len(children) > 1


def is_header(block: Any) -> bool:
    return is_text_block(block) and block.get("style") in HEADER_STYLES


def is_normal(block: Any) -> bool:
    return is_text_block(block) and block.get("style", NORMAL_STYLE) in (NORMAL_STYLE, None, "")


def block_text(block: Any) -> str:
    """Join the text of a block's valid spans."""
    children = block.get("children") if isinstance(block, dict) else None
    if not isinstance(children, list):
        return ""
    return "".join(child["text"] for child in children if is_valid_span(child))


@dataclass(frozen=True)
class BlockInfo:
    """Per-block facts used for heading context lookup."""

    text: str
    is_normal: bool
    is_header: bool


def describe_blocks(blocks: list[Any]) -> dict[int, BlockInfo]:
    """Map each text block's index to its joined text and style class."""
    return {
        index: BlockInfo(text=block_text(block), is_normal=is_normal(block), is_header=is_header(block))
        for index, block in enumerate(blocks)
        if is_text_block(block)
    }


def find_header_context(
    blocks: list[Any],
    infos: dict[int, BlockInfo],
    header_index: int,
) -> Optional[str]:
    """
    Find translation context for a heading block.

    Scans forward from the heading: the first normal block supplies its text,
    another heading ends the search with no context. Custom blocks and other
    styles in between are skipped.

    Args:
        blocks: The rich-text array
        infos: Result of :func:`describe_blocks` for ``blocks``
        header_index: Index of the heading block

    Returns:
        The following paragraph's text, or None
    """
    for index in range(header_index + 1, len(blocks)):
        info = infos.get(index)
        if info is None:
            continue
        if info.is_header:
            return None
        if info.is_normal:
            return info.text if info.text.strip() else None
    return None
