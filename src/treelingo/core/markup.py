"""Rich-text block <-> HTML markup codec.

Complex blocks are sent to the provider as HTML so inline formatting and
links survive translation. The block key, style and mark definitions ride
along as ``data-`` attributes on the block element; marks become nested
inline tags. Decoding walks the parsed markup with a mark stack and rebuilds
spans from the runs of text under each active mark set.
"""

import copy
import html
import json
import logging
import re
import uuid
from typing import Any, Optional
from urllib.parse import quote, unquote

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from treelingo.core.blocks import HEADER_STYLES, NORMAL_STYLE, SPAN_TYPE, block_text, is_valid_span

logger = logging.getLogger("treelingo.markup")

MARK_TO_TAG = {
    "strong": "strong",
    "em": "em",
    "underline": "u",
    "strike-through": "s",
    "code": "code",
}

TAG_TO_MARK = {
    "strong": "strong",
    "b": "strong",
    "em": "em",
    "i": "em",
    "u": "underline",
    "s": "strike-through",
    "strike": "strike-through",
    "del": "strike-through",
    "code": "code",
}

STANDARD_LIST_STYLES = ("bullet", "number")

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def generate_key() -> str:
    """Return a fresh 12 character key for a span."""
    return uuid.uuid4().hex[:12]


def make_span(text: str, marks: Optional[list[str]] = None) -> dict[str, Any]:
    return {"_type": SPAN_TYPE, "_key": generate_key(), "text": text, "marks": list(marks or [])}


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def block_to_markup(block: dict[str, Any]) -> str:
    """
    Serialize a rich-text block to HTML.

    Never raises: if rendering fails the plain concatenated span text is
    returned so no content is lost.

    Args:
        block: A ``block`` typed rich-text block

    Returns:
        HTML string for the provider
    """
    try:
        return _render_block(block)
    except Exception as e:
        logger.warning(f"Failed to encode block {block.get('_key')!r} as markup, using plain text: {e}")
        return block_text(block)


def _attr(name: str, value: Any) -> str:
    return f'{name}="{html.escape(str(value), quote=True)}"'


def _block_tag(style: str) -> str:
    if style == NORMAL_STYLE:
        return "p"
    if style in HEADER_STYLES:
        return style
    if style == "blockquote":
        return "blockquote"
    return "div"


def _render_block(block: dict[str, Any]) -> str:
    style = block.get("style") or NORMAL_STYLE
    mark_defs = block.get("markDefs") or []
    encoded_defs = (
        quote(json.dumps(mark_defs, ensure_ascii=False, separators=(",", ":"))) if mark_defs else ""
    )
    block_attrs = " ".join(
        [
            _attr("data-block-key", block.get("_key", "")),
            _attr("data-block-style", style),
            _attr("data-markdefs", encoded_defs),
        ]
    )
    definitions = {
        d["_key"]: d for d in mark_defs if isinstance(d, dict) and isinstance(d.get("_key"), str)
    }
    inner = _render_children(block.get("children") or [], definitions)

    list_item = block.get("listItem")
    if not list_item:
        tag = _block_tag(style)
        return f"<{tag} {block_attrs}>{inner}</{tag}>"

    container = "ol" if list_item == "number" else "ul"
    list_attr = "" if list_item in STANDARD_LIST_STYLES else " " + _attr("data-list-item", list_item)
    return f"<{container}{list_attr}><li{list_attr} {block_attrs}>{inner}</li></{container}>"


def _ordered_marks(children: list[Any], index: int) -> list[str]:
    """Order a span's marks so those continuing over more following spans open first."""
    marks = list(dict.fromkeys(children[index].get("marks") or []))

    def run_length(mark: str) -> int:
        length = 0
        for child in children[index + 1 :]:
            if not is_valid_span(child) or mark not in (child.get("marks") or []):
                break
            length += 1
        return length

    return sorted(marks, key=run_length, reverse=True)


def _open_tag(mark: str, definitions: dict[str, dict[str, Any]]) -> str:
    if mark in definitions:
        definition = definitions[mark]
        href = definition.get("href") or definition.get("url") or "#"
        return (
            f"<a {_attr('href', href)} {_attr('data-markdef-key', mark)} "
            f"{_attr('data-markdef-type', definition.get('_type', ''))}>"
        )
    if mark in MARK_TO_TAG:
        return f"<{MARK_TO_TAG[mark]}>"
    return f"<span {_attr('data-mark', mark)}>"


def _close_tag(mark: str, definitions: dict[str, dict[str, Any]]) -> str:
    if mark in definitions:
        return "</a>"
    if mark in MARK_TO_TAG:
        return f"</{MARK_TO_TAG[mark]}>"
    return "</span>"


def _render_children(children: list[Any], definitions: dict[str, dict[str, Any]]) -> str:
    parts: list[str] = []
    open_marks: list[str] = []

    def close_to(depth: int) -> None:
        while len(open_marks) > depth:
            parts.append(_close_tag(open_marks.pop(), definitions))

    for index, child in enumerate(children):
        if not is_valid_span(child):
            # Inline objects are opaque to the provider: keep a placeholder.
            close_to(0)
            if isinstance(child, dict):
                ref = _attr("data-inline-key", child["_key"]) if child.get("_key") else _attr(
                    "data-inline-index", index
                )
                parts.append(f"<span {ref}></span>")
            continue

        marks = _ordered_marks(children, index)
        common = 0
        while common < len(open_marks) and common < len(marks) and open_marks[common] == marks[common]:
            common += 1
        close_to(common)
        for mark in marks[common:]:
            parts.append(_open_tag(mark, definitions))
            open_marks.append(mark)
        parts.append(html.escape(child["text"], quote=False).replace("\n", "<br>"))

    close_to(0)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def markup_text(markup: str) -> str:
    """Strip tags from markup, keeping its text."""
    try:
        return BeautifulSoup(markup, "html.parser").get_text()
    except Exception:
        return html.unescape(re.sub(r"<[^>]*>", "", markup))


def _mark_for_tag(tag: Tag) -> Optional[str]:
    if tag.name == "a":
        return tag.get("data-markdef-key") or None
    if tag.name == "span":
        return tag.get("data-mark") or None
    return TAG_TO_MARK.get(tag.name)


class _SpanBuilder:
    """Accumulates text runs under the active mark stack into spans."""

    def __init__(self, original_children: list[Any]):
        self.children: list[dict[str, Any]] = []
        self._original_children = original_children
        self._stack: list[Optional[str]] = []
        self._text: list[str] = []
        self._marks: list[str] = []

    def feed(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, _SKIPPED_STRINGS):
                continue
            if isinstance(child, NavigableString):
                self._append(str(child))
            elif isinstance(child, Tag):
                self._handle_tag(child)

    def result(self) -> list[dict[str, Any]]:
        self._flush()
        return _merge_spans(self.children)

    def _handle_tag(self, tag: Tag) -> None:
        if tag.name == "br":
            self._append("\n")
            return
        if tag.has_attr("data-inline-key") or tag.has_attr("data-inline-index"):
            self._flush()
            inline = self._find_inline(tag)
            if inline is not None:
                self.children.append(copy.deepcopy(inline))
            return

        self._stack.append(_mark_for_tag(tag))
        self.feed(tag)
        self._stack.pop()

    def _find_inline(self, tag: Tag) -> Optional[dict[str, Any]]:
        key = tag.get("data-inline-key")
        if key:
            for child in self._original_children:
                if isinstance(child, dict) and child.get("_key") == key:
                    return child
            return None
        try:
            candidate = self._original_children[int(tag.get("data-inline-index"))]
        except (TypeError, ValueError, IndexError):
            return None
        return candidate if isinstance(candidate, dict) else None

    def _active_marks(self) -> list[str]:
        return list(dict.fromkeys(mark for mark in self._stack if mark))

    def _append(self, text: str) -> None:
        marks = self._active_marks()
        if set(marks) != set(self._marks):
            self._flush()
            self._marks = marks
        self._text.append(text)

    def _flush(self) -> None:
        text = "".join(self._text)
        self._text = []
        if text:
            self.children.append(make_span(text, self._marks))


def _merge_spans(children: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Merge adjacent spans whose mark sets are equal."""
    merged: list[dict[str, Any]] = []
    for child in children:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and previous.get("_type") == SPAN_TYPE
            and child.get("_type") == SPAN_TYPE
            and set(previous["marks"]) == set(child["marks"])
        ):
            previous["text"] += child["text"]
        else:
            merged.append(child)
    return merged


def markup_to_spans(markup: str, original_children: Optional[list[Any]] = None) -> list[dict[str, Any]]:
    """
    Parse markup into spans carrying marks.

    Args:
        markup: HTML produced by :func:`block_to_markup` (possibly translated)
        original_children: Children of the source block, used to restore
            inline objects referenced by placeholders

    Returns:
        List of spans (and restored inline objects) in document order
    """
    builder = _SpanBuilder(original_children or [])
    builder.feed(BeautifulSoup(markup, "html.parser"))
    return builder.result()


def _decode_mark_defs(soup: BeautifulSoup, fallback: list[Any]) -> list[Any]:
    element = soup.find(attrs={"data-markdefs": True})
    encoded = element.get("data-markdefs") if element is not None else None
    if not encoded:
        return fallback
    try:
        decoded = json.loads(unquote(encoded))
    except ValueError as e:
        logger.warning(f"Could not decode mark definitions from markup: {e}")
        return fallback
    return decoded if isinstance(decoded, list) else fallback


def _decode_list_item(soup: BeautifulSoup, fallback: Any) -> Any:
    container = soup.find(["ul", "ol"])
    if container is None:
        return fallback
    custom = container.get("data-list-item")
    if custom:
        return custom
    return "number" if container.name == "ol" else "bullet"


def markup_to_block(markup: str, original_block: dict[str, Any]) -> dict[str, Any]:
    """
    Rebuild a rich-text block from (translated) markup.

    Key, style and mark definitions come from the markup's data attributes,
    falling back to the original block. Fields the markup does not carry
    (``level``, custom fields) are copied from the original. On any failure
    the block gets a single unmarked span holding the markup's plain text.

    Args:
        markup: HTML produced by :func:`block_to_markup`, possibly translated
        original_block: The block the markup was encoded from

    Returns:
        New block; ``original_block`` is not modified
    """
    try:
        soup = BeautifulSoup(markup, "html.parser")
        block = copy.deepcopy(original_block)

        key_element = soup.find(attrs={"data-block-key": True})
        if key_element is not None and key_element.get("data-block-key"):
            block["_key"] = key_element["data-block-key"]

        style_element = soup.find(attrs={"data-block-style": True})
        if style_element is not None and style_element.get("data-block-style"):
            block["style"] = style_element["data-block-style"]

        block["markDefs"] = _decode_mark_defs(soup, original_block.get("markDefs") or [])
        if original_block.get("listItem") or soup.find(["ul", "ol"]) is not None:
            block["listItem"] = _decode_list_item(soup, original_block.get("listItem"))

        # Text outside the block element (e.g. a trailing newline) is not content.
        root = key_element
        if root is None:
            root = soup.find(["li", "p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "div"])
        builder = _SpanBuilder(original_block.get("children") or [])
        builder.feed(root if root is not None else soup)
        block["children"] = builder.result() or [make_span("")]
        return block
    except Exception as e:
        logger.warning(
            f"Failed to decode markup for block {original_block.get('_key')!r}, using plain text: {e}"
        )
        fallback = copy.deepcopy(original_block)
        fallback["children"] = [make_span(markup_text(markup))]
        return fallback
