"""Tests for the rich-text <-> markup codec.

Following Google Python testing guidelines:
- Test function names clearly describe what is being tested
- Use Arrange-Act-Assert pattern
- Each test validates one specific behavior
"""

from unittest.mock import patch

from builders import block, span

from treelingo.core.markup import block_to_markup, markup_text, markup_to_block, markup_to_spans


def _shape(children):
    """Reduce children to (text, sorted marks) pairs."""
    return [(c["text"], sorted(c["marks"])) for c in children if c.get("_type") == "span"]


class TestBlockToMarkup:
    """Tests for encoding blocks."""

    def test_encodes_block_attributes(self) -> None:
        """Test key and style ride along as data attributes."""
        # Arrange
        source = block("k1", [span("s1", "Hello ", []), span("s2", "world", ["strong"])])

        # Act
        markup = block_to_markup(source)

        # Assert
        assert markup.startswith('<p data-block-key="k1" data-block-style="normal"')
        assert "<strong>world</strong>" in markup

    def test_heading_uses_heading_tag(self) -> None:
        """Test header styles map to their HTML tag."""
        markup = block_to_markup(block("k", [span("s", "Title", ["em"])], style="h3"))
        assert markup.startswith("<h3 ")
        assert markup.endswith("</h3>")

    def test_link_mark_renders_anchor(self) -> None:
        """Test mark definitions become anchors carrying their key and href."""
        # Arrange
        source = block(
            "k",
            [span("s", "docs", ["lnk"])],
            mark_defs=[{"_type": "link", "_key": "lnk", "href": "https://example.com/a?b=1&c=2"}],
        )

        # Act
        markup = block_to_markup(source)

        # Assert
        assert 'href="https://example.com/a?b=1&amp;c=2"' in markup
        assert 'data-markdef-key="lnk"' in markup

    def test_text_is_escaped_and_newlines_become_breaks(self) -> None:
        """Test special characters are escaped and newlines become <br>."""
        markup = block_to_markup(block("k", [span("s1", "a < b\nc"), span("s2", "!", ["em"])]))
        assert "a &lt; b<br>c" in markup

    def test_list_item_is_wrapped(self) -> None:
        """Test list blocks render inside ul/ol with custom styles kept."""
        # Arrange
        bullet = block("k", [span("s", "one", ["em"])], listItem="bullet", level=1)
        check = block("k", [span("s", "done", ["em"])], listItem="checkBullet", level=1)

        # Act & Assert
        assert block_to_markup(bullet).startswith("<ul><li ")
        assert '<ul data-list-item="checkBullet">' in block_to_markup(check)

    def test_encoding_failure_falls_back_to_plain_text(self) -> None:
        """Test a rendering error yields the plain block text."""
        # Arrange
        source = block("k", [span("s1", "Hello "), span("s2", "world", ["em"])])

        # Act
        with patch("treelingo.core.markup._render_block", side_effect=RuntimeError("boom")):
            markup = block_to_markup(source)

        # Assert
        assert markup == "Hello world"


class TestMarkupToSpans:
    """Tests for decoding markup into spans."""

    def test_nested_marks_accumulate(self) -> None:
        """Test text inside nested tags carries every enclosing mark."""
        children = markup_to_spans("<p>a<strong>b<em>c</em></strong></p>")
        assert _shape(children) == [("a", []), ("b", ["strong"]), ("c", ["em", "strong"])]

    def test_tag_aliases_map_to_marks(self) -> None:
        """Test b/i/del are read as strong/em/strike-through."""
        children = markup_to_spans("<b>x</b><i>y</i><del>z</del>")
        assert _shape(children) == [("x", ["strong"]), ("y", ["em"]), ("z", ["strike-through"])]

    def test_custom_mark_span_and_link(self) -> None:
        """Test data-mark spans and markdef anchors restore their marks."""
        children = markup_to_spans('<span data-mark="highlight">h</span><a data-markdef-key="l1">go</a>')
        assert _shape(children) == [("h", ["highlight"]), ("go", ["l1"])]

    def test_no_duplicate_marks(self) -> None:
        """Test the same mark nested twice appears once."""
        children = markup_to_spans("<strong><b>x</b></strong>")
        assert children[0]["marks"] == ["strong"]

    def test_adjacent_equal_runs_merge(self) -> None:
        """Test neighbouring runs with equal marks become one span."""
        children = markup_to_spans("<em>a</em><i>b</i>")
        assert _shape(children) == [("ab", ["em"])]

    def test_br_becomes_newline(self) -> None:
        """Test <br> decodes to a newline inside the span."""
        assert markup_to_spans("<p>a<br>b</p>")[0]["text"] == "a\nb"

    def test_inline_placeholder_restores_original_child(self) -> None:
        """Test inline object placeholders are replaced by the original child."""
        # Arrange
        inline = {"_type": "footnote", "_key": "fn1", "note": "x"}

        # Act
        children = markup_to_spans('<p>a<span data-inline-key="fn1"></span>b</p>', [inline])

        # Assert
        assert children[1] == inline
        assert [c.get("text") for c in children] == ["a", None, "b"]


class TestMarkupToBlock:
    """Tests for rebuilding blocks."""

    def test_round_trip_preserves_structure(self) -> None:
        """Test untranslated markup decodes to the same text, marks and definitions."""
        # Arrange
        source = block(
            "k1",
            [span("s1", "Read "), span("s2", "the docs", ["strong", "lnk"]), span("s3", " now")],
            mark_defs=[{"_type": "link", "_key": "lnk", "href": "https://example.com"}],
        )

        # Act
        rebuilt = markup_to_block(block_to_markup(source), source)

        # Assert
        assert rebuilt["_key"] == "k1"
        assert rebuilt["style"] == "normal"
        assert rebuilt["markDefs"] == source["markDefs"]
        assert _shape(rebuilt["children"]) == _shape(source["children"])

    def test_translated_text_keeps_marks(self) -> None:
        """Test translated text nodes keep the marks of their tags."""
        # Arrange
        source = block("k1", [span("s1", "Hello "), span("s2", "world", ["em"])])
        translated = block_to_markup(source).replace("Hello ", "Hallo ").replace("world", "Welt")

        # Act
        rebuilt = markup_to_block(translated, source)

        # Assert
        assert _shape(rebuilt["children"]) == [("Hallo ", []), ("Welt", ["em"])]

    def test_list_fields_round_trip(self) -> None:
        """Test list item style and extra block fields survive."""
        # Arrange
        source = block("k", [span("s", "done", ["em"])], listItem="checkBullet", level=2)

        # Act
        rebuilt = markup_to_block(block_to_markup(source), source)

        # Assert
        assert rebuilt["listItem"] == "checkBullet"
        assert rebuilt["level"] == 2

    def test_text_outside_block_element_is_ignored(self) -> None:
        """Test whitespace a provider adds around the block element does not become spans."""
        # Arrange
        source = block("k", [span("s", "Hi", ["strong"])])
        translated = "\n" + block_to_markup(source) + "\n"

        # Act
        rebuilt = markup_to_block(translated, source)

        # Assert
        assert _shape(rebuilt["children"]) == [("Hi", ["strong"])]

    def test_text_outside_list_wrapper_is_ignored(self) -> None:
        """Test list items only take the text inside the item element."""
        # Arrange
        source = block("k", [span("s", "Item", ["em"])], listItem="bullet")

        # Act
        rebuilt = markup_to_block(block_to_markup(source) + "\n", source)

        # Assert
        assert _shape(rebuilt["children"]) == [("Item", ["em"])]

    def test_source_block_is_not_modified(self) -> None:
        """Test decoding builds a new block."""
        source = block("k", [span("s", "x", ["em"])])
        markup_to_block("<p><em>y</em></p>", source)
        assert source["children"][0]["text"] == "x"

    def test_empty_markup_gets_empty_span(self) -> None:
        """Test a block always keeps at least one span."""
        rebuilt = markup_to_block("<p></p>", block("k", [span("s", "x", ["em"])]))
        assert _shape(rebuilt["children"]) == [("", [])]

    def test_decode_failure_falls_back_to_plain_span(self) -> None:
        """Test a parsing error yields one unmarked span with the markup text."""
        # Arrange
        source = block("k", [span("s", "x", ["em"])])

        # Act
        with patch("treelingo.core.markup._SpanBuilder.feed", side_effect=RuntimeError("boom")):
            rebuilt = markup_to_block("<p><em>Hallo</em> Welt</p>", source)

        # Assert
        assert _shape(rebuilt["children"]) == [("Hallo Welt", [])]


def test_markup_text_strips_tags() -> None:
    """Test markup_text returns the bare text."""
    assert markup_text("<p>a <strong>b</strong> &amp; c</p>") == "a b & c"
