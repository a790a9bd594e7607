"""Embedded payload decoder.

Resolves a string of unknown provenance into the text a reader should
see. The string may be plain prose, a fenced block, a complete or
truncated serialized object, a flat key/value fragment, or a rich-text
document tree. Both public extractors delegate here so the same rules
apply to chunk and complete events.

Every function is total: when nothing displayable can be recovered the
result is an empty string, never the raw structure.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from inkwell.streaming.sniff import (
    LABEL_LINE_RE,
    is_bare_label,
    is_partial_fence,
    is_structure_like,
    looks_like_key_value,
    split_fence,
    starts_with_label,
    strip_fragment_noise,
    unwrap_fence,
)

logger = logging.getLogger(__name__)

# Keys probed, in order, on a decoded object.
_TEXT_KEYS = ("content", "text", "delta", "message")

# A "content" key in key position followed by the opening quote of its value.
_CONTENT_VALUE_RE = re.compile(r'(?:^|(?<=[{,\s]))"content"\s*:\s*"')

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

# Nested serialized values are unwrapped at most this many times.
_MAX_DEPTH = 4


def decode_embedded(raw: str) -> str:
    """Return the displayable text carried by ``raw``.

    Rules, first match wins:

    1. Plain text (no fence, no structure, no key labels) is returned unchanged.
    2. A fenced block is unwrapped and its interior decoded.
    3. A complete serialized object yields its ``content`` string; a
       document tree is flattened; anything else yields ``""``.
    4. A truncated object yields the ``content`` value read so far.
    5. A brace-less key/value fragment yields the text after its
       ``content`` key, or ``""`` when it has none.
    6. A lone ``title``/``subtitle``/``content`` label yields ``""``.
    7. Values recovered by scanning lose chunk-boundary noise.

    Args:
        raw: Any string received from the stream.

    Returns:
        The displayable text, or an empty string.
    """
    if not isinstance(raw, str) or not raw:
        return ""
    return _decode(raw, 0)


def _decode(raw: str, depth: int) -> str:
    if is_bare_label(raw) or is_partial_fence(raw):
        return ""

    fenced = split_fence(raw)
    if fenced is not None:
        inner, closed = fenced
        if not inner or depth >= _MAX_DEPTH:
            return ""
        # An open fence starting with a quote is a key/value fragment
        # whose first key is still arriving.
        if not closed and inner.startswith('"'):
            return _decode_key_value(inner, depth + 1)
        return _decode(inner, depth + 1)

    if is_structure_like(raw):
        return _decode_structure(raw.strip(), depth)

    if looks_like_key_value(raw):
        return _decode_key_value(raw.strip(), depth)

    if starts_with_label(raw):
        return extract_labelled_content(raw)

    return raw


def _decode_structure(text: str, depth: int) -> str:
    """Decode a serialized object/array, falling back to a partial scan."""
    try:
        parsed = json.loads(text, strict=False)
    except (ValueError, RecursionError):
        logger.debug("Structured decode failed, scanning %d chars for content", len(text))
        return strip_fragment_noise(scan_partial_content(text))
    return _text_from_parsed(parsed, depth)


def _decode_key_value(text: str, depth: int) -> str:
    """Decode a flat ``"key": value`` fragment that lacks enclosing braces."""
    scanned = scan_partial_content(text)
    if scanned:
        return strip_fragment_noise(scanned)

    try:
        parsed = json.loads("{" + text.rstrip().rstrip(",") + "}", strict=False)
    except (ValueError, RecursionError):
        logger.debug("Key/value fragment has no content value")
        return ""
    return _text_from_parsed(parsed, depth)


def _text_from_parsed(value: Any, depth: int) -> str:
    if isinstance(value, Mapping):
        picked = _pick_text(value)
        if picked is not None:
            return _decode_nested(picked, depth)
    return flatten_document(value)


def _pick_text(obj: Mapping[str, Any]) -> str | None:
    """First string among the known text keys, then an OpenAI-style delta."""
    for key in _TEXT_KEYS:
        value = obj.get(key)
        if isinstance(value, str):
            return value

    choices = obj.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], Mapping):
        delta = choices[0].get("delta")
        if isinstance(delta, Mapping) and isinstance(delta.get("content"), str):
            return delta["content"]
    return None


def _decode_nested(value: str, depth: int) -> str:
    """Decode a recovered value again when it is itself a serialized payload.

    Past the nesting limit a payload that is still serialized yields ``""``.
    """
    if not (is_structure_like(value) or unwrap_fence(value) is not None):
        return value
    if depth >= _MAX_DEPTH:
        logger.debug("Nested payload deeper than %d levels dropped", _MAX_DEPTH)
        return ""
    return _decode(value, depth + 1)


def scan_partial_content(text: str) -> str:
    """Read the ``content`` string value out of a possibly truncated fragment.

    Returns everything after the value's opening quote up to the
    matching unescaped closing quote, or up to the end of input when the
    value is still being streamed. Escapes are decoded; an escape cut
    off at the end of input is held back, so each longer prefix of the
    same fragment yields a longer prefix of the same text.
    """
    match = _CONTENT_VALUE_RE.search(text)
    if match is None:
        return ""
    value, _closed = read_string_value(text, match.end())
    return value


def read_string_value(text: str, start: int) -> tuple[str, bool]:
    """Scan a serialized string value starting just after its opening quote.

    Args:
        text: The source string.
        start: Index of the first character of the value.

    Returns:
        (decoded value, True if the closing quote was found).
    """
    out: list[str] = []
    pos = start
    end = len(text)
    while pos < end:
        ch = text[pos]
        if ch == '"':
            return "".join(out), True
        if ch != "\\":
            out.append(ch)
            pos += 1
            continue

        if pos + 1 >= end:
            break
        esc = text[pos + 1]
        if esc == "u":
            hex_digits = text[pos + 2:pos + 6]
            if len(hex_digits) < 4:
                break
            try:
                code = int(hex_digits, 16)
            except ValueError:
                out.append(esc)
                pos += 2
                continue
            out.append(chr(code))
            pos += 6
            continue

        out.append(_SIMPLE_ESCAPES.get(esc, esc))
        pos += 2

    return "".join(out), False


def extract_labelled_content(text: str) -> str:
    """Return the section after a ``content`` label line.

    Handles key/value text where keys sit on their own lines::

        title
        My Post
        content
        <p>Body</p>

    The section runs to the next label line or the end of input. Text
    with labels but no ``content`` label yields ``""``.
    """
    labels = list(LABEL_LINE_RE.finditer(text))
    for i, label in enumerate(labels):
        if label.group("key") != "content":
            continue
        end = labels[i + 1].start() if i + 1 < len(labels) else len(text)
        return strip_fragment_noise(text[label.end():end].strip())
    return ""


def flatten_document(tree: Any) -> str:
    """Concatenate the leaf text of a rich-text document tree.

    Walks depth-first in array order. A node with a ``text`` string is a
    leaf and contributes it verbatim; otherwise its ``content`` (a list
    of nodes, or a single node) is visited. Nodes with neither are
    skipped. No separators are inserted between leaves.
    """
    parts: list[str] = []
    _visit(tree, parts)
    return "".join(parts)


def _visit(node: Any, parts: list[str]) -> None:
    if isinstance(node, list):
        for child in node:
            _visit(child, parts)
        return
    if not isinstance(node, Mapping):
        return
    text = node.get("text")
    if isinstance(text, str):
        parts.append(text)
        return
    children = node.get("content")
    if isinstance(children, (list, Mapping)):
        _visit(children, parts)
