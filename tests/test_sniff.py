"""Tests for the shape-sniffing primitives."""

from __future__ import annotations

from inkwell.streaming.sniff import (
    is_appendable_chunk,
    is_bare_label,
    is_partial_fence,
    is_plain_text,
    is_structure_like,
    looks_like_key_value,
    split_fence,
    starts_with_label,
    strip_fragment_noise,
    unescape_newlines_and_tabs,
    unwrap_fence,
)


class TestStructureLike:
    def test_object(self):
        assert is_structure_like('{"content": "x"}') is True
        assert is_structure_like('  \n{"content"') is True

    def test_array(self):
        assert is_structure_like('[{"type": "text"}]') is True
        assert is_structure_like("[") is True
        assert is_structure_like("[]") is True

    def test_placeholder_tokens_are_prose(self):
        assert is_structure_like("[0] Intro") is False
        assert is_structure_like("[IMAGE:1]") is False

    def test_prose(self):
        assert is_structure_like("Hello world") is False


class TestPartialFence:
    def test_backticks(self):
        assert is_partial_fence("`") is True
        assert is_partial_fence("``") is True
        assert is_partial_fence("```") is True

    def test_escaped_backticks(self):
        assert is_partial_fence("\\`") is True
        assert is_partial_fence("\\`\\`\\`") is True

    def test_not_fence(self):
        assert is_partial_fence("```json") is False
        assert is_partial_fence("") is False
        assert is_partial_fence("a`") is False


class TestBareLabel:
    def test_labels(self):
        for label in ("title", "subtitle", "content", '"content"', "title:", '"title":', "content\n"):
            assert is_bare_label(label) is True, label

    def test_leading_space_is_prose(self):
        assert is_bare_label(" content") is False

    def test_case_sensitive(self):
        assert is_bare_label("Content") is False

    def test_label_with_value(self):
        assert is_bare_label("title: My Post") is False


class TestKeyValue:
    def test_flat_fragment(self):
        assert looks_like_key_value('"title": "X", "metaDescription": "Y"') is True
        assert looks_like_key_value('"content": ') is True

    def test_quoted_prose(self):
        assert looks_like_key_value('"Hello," she said.') is False


class TestStartsWithLabel:
    def test_label_first(self):
        assert starts_with_label("title\nMy Post\ncontent\nBody") is True
        assert starts_with_label("\n  content:\nBody") is True

    def test_label_later(self):
        assert starts_with_label("Intro\ncontent\nBody") is False

    def test_no_label(self):
        assert starts_with_label("The content of this post") is False


class TestUnwrapFence:
    def test_tagged(self):
        assert unwrap_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_untagged(self):
        assert unwrap_fence("```\nJust text\n```") == "Just text"

    def test_escaped(self):
        assert unwrap_fence('\\`\\`\\`json\n{"a": 1}\n\\`\\`\\`') == '{"a": 1}'

    def test_unclosed(self):
        assert unwrap_fence('```json\n{"content": "Hel') == '{"content": "Hel'

    def test_partial_closing_fence_dropped(self):
        assert unwrap_fence('```json\n{"a": 1}\n`') == '{"a": 1}'
        assert unwrap_fence('```json\n{"a": 1}\n``') == '{"a": 1}'

    def test_tag_still_arriving(self):
        assert unwrap_fence("```js") == ""

    def test_backticks_inside_value_do_not_close(self):
        text = '```json\n{"content": "use ```code``` here"}\n```'
        assert unwrap_fence(text) == '{"content": "use ```code``` here"}'

    def test_code_block_in_prose(self):
        assert unwrap_fence("Run this:\n```python\nprint('hi')\n```") is None

    def test_prose_before_structured_fence(self):
        assert unwrap_fence('Here:\n```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert unwrap_fence("plain") is None

    def test_split_reports_closing_fence(self):
        assert split_fence('```json\n"title": "T"\n```') == ('"title": "T"', True)
        assert split_fence('```json\n"tit') == ('"tit', False)
        assert split_fence("plain") is None


class TestPlainText:
    def test_prose_and_markup(self):
        assert is_plain_text("Hello world") is True
        assert is_plain_text("<p>Hello <strong>world</strong></p>") is True
        assert is_plain_text("# Heading\n\n- item") is True

    def test_whitespace(self):
        assert is_plain_text("\n") is True
        assert is_plain_text("  ") is True

    def test_payloads(self):
        assert is_plain_text('{"content": "x"}') is False
        assert is_plain_text("```json\n{}") is False
        assert is_plain_text('"title": "X"') is False
        assert is_plain_text("title\nMy Post") is False
        assert is_plain_text("content") is False
        assert is_plain_text("``") is False

    def test_code_block_in_prose(self):
        assert is_plain_text("Run:\n```sh\nls\n```\nDone.") is True


class TestAppendableChunk:
    def test_prose(self):
        assert is_appendable_chunk("Hello ") is True
        assert is_appendable_chunk(" selecting") is True

    def test_whitespace_kept(self):
        assert is_appendable_chunk("\n") is True
        assert is_appendable_chunk("  ") is True

    def test_punctuation_kept(self):
        assert is_appendable_chunk(",") is True
        assert is_appendable_chunk(".") is True

    def test_structure_only(self):
        for chunk in ('"', "{", "}", ": ", '", "', "[", "```", "\\`"):
            assert is_appendable_chunk(chunk) is False, chunk

    def test_wrapper_tokens(self):
        assert is_appendable_chunk("json") is False
        assert is_appendable_chunk("metaDescription") is False
        assert is_appendable_chunk(" json") is True

    def test_empty(self):
        assert is_appendable_chunk("") is False


class TestFragmentNoise:
    def test_leading(self):
        assert strip_fragment_noise('"": "Hello') == "Hello"
        assert strip_fragment_noise('": "Hello') == "Hello"

    def test_trailing(self):
        assert strip_fragment_noise('world"}') == "world"
        assert strip_fragment_noise('world" }\n') == "world"

    def test_untouched(self):
        assert strip_fragment_noise('She said "hi"') == 'She said "hi"'
        assert strip_fragment_noise("a {b} c") == "a {b} c"


class TestUnescape:
    def test_literal_sequences(self):
        assert unescape_newlines_and_tabs("a\\nb\\tc") == "a\nb\tc"

    def test_real_characters_untouched(self):
        assert unescape_newlines_and_tabs("a\nb") == "a\nb"
