"""Shape-sniffing primitives for streamed generation payloads.

Cheap, regex-based checks that classify a string before any decoding
is attempted: fenced blocks, serialized structures, flat key/value
fragments, bare key labels, and chunk-boundary noise. Nothing here
parses JSON; the decoder builds on these.
"""

from __future__ import annotations

import re

# Opening/closing fence: literal ``` or the backslash-escaped \`\`\`
# some backends emit when the payload was string-escaped twice.
FENCE_RE = re.compile(r"(?:\\`){3}|`{3}")

# Optional language tag after an opening fence. Only counts as a tag when
# it runs to the end of its line (or to the end of input mid-stream).
_FENCE_TAG_RE = re.compile(r"[\w+.-]*[ \t]*(?:\r?\n|\Z)")

# Tail of an unclosed body that is the start of the closing fence.
_PARTIAL_CLOSE_RE = re.compile(r"\r?\n[ \t]*(?:(?:\\?`){1,2}\\?|\\)\Z")

# One to three backticks and nothing else: an opening fence still arriving.
_PARTIAL_FENCE_RE = re.compile(r"(?:\\?`){1,3}\\?|\\")

# A JSON array opener. "[0]" or "[IMAGE:1]" placeholder tokens do not match.
_ARRAY_OPEN_RE = re.compile(r"\[\s*(?:[\[{\"\]]|\Z)")

# Leading "key": of a flat key/value fragment without enclosing braces.
_KEY_VALUE_RE = re.compile(r'\s*"[^"\n]*"\s*:\s*(?:["\[{]|\Z)')

# Reserved labels that are structural noise when they arrive on their own.
_BARE_LABEL_RE = re.compile(r'"?(?:title|subtitle|content)"?[ \t]*:?[ \t]*')

# A line holding only a key label, as in "title\n...\ncontent\n<p>...".
LABEL_LINE_RE = re.compile(
    r"^[ \t]*(?P<key>title|subtitle|metaDescription|description|content)[ \t]*:?[ \t]*\r?$",
    re.MULTILINE,
)

# Chunks made only of serialization punctuation.
_STRUCTURE_ONLY_RE = re.compile(r'[\s\[\]{}:,"\\`]+')

# Wrapper tokens that arrive as standalone chunks when a fenced object is
# streamed piecewise ("```", "json", "\n", "{", ...).
_WRAPPER_TOKENS = frozenset({"json", "metaDescription"})

# Boundary artifacts left when a scan splits across two events.
_LEADING_NOISE_RE = re.compile(r'\A\s*"\s*"?\s*:\s*"\s*')
_TRAILING_NOISE_RE = re.compile(r'\s*"\s*}\s*\Z')


def is_structure_like(text: str) -> bool:
    """True if ``text`` opens a serialized object or array."""
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return True
    return _ARRAY_OPEN_RE.match(stripped) is not None


def is_partial_fence(text: str) -> bool:
    """True if ``text`` is nothing but the first backticks of a fence."""
    stripped = text.strip()
    return bool(stripped) and _PARTIAL_FENCE_RE.fullmatch(stripped) is not None


def is_bare_label(text: str) -> bool:
    """True if ``text`` is a reserved key label with no value.

    A label preceded by a space is a word inside prose (" content"), not
    a key, and is left alone.
    """
    return _BARE_LABEL_RE.fullmatch(text.strip("\r\n")) is not None


def looks_like_key_value(text: str) -> bool:
    """True if ``text`` starts like a brace-less ``"key": value`` sequence."""
    return _KEY_VALUE_RE.match(text) is not None


def starts_with_label(text: str) -> bool:
    """True if the first non-blank line of ``text`` is a key label line."""
    match = LABEL_LINE_RE.search(text)
    return match is not None and not text[: match.start()].strip()


def unwrap_fence(text: str) -> str | None:
    """Return the interior of a fenced payload, or None if ``text`` is not one.

    The fence may be literal or backslash-escaped and may carry a
    language tag. An opening fence without its closing partner is
    accepted (the stream is still arriving); a trailing partial closing
    fence is dropped so successive prefixes decode consistently.

    A fence that does not open the string only counts when it wraps a
    serialized structure; otherwise it is an ordinary code block inside
    prose and the caller should treat ``text`` as plain.
    """
    fenced = split_fence(text)
    return fenced[0] if fenced is not None else None


def split_fence(text: str) -> tuple[str, bool] | None:
    """Like unwrap_fence(), but also report whether the closing fence has arrived.

    Returns:
        (interior, closed), or None if ``text`` is not a fenced payload.
    """
    match = FENCE_RE.search(text)
    if match is None:
        return None

    marker = match.group(0)
    rest = text[match.end():]
    tag = _FENCE_TAG_RE.match(rest)
    body = rest[tag.end():] if tag else rest

    close = _find_closing_fence(body, marker)
    if close is None:
        inner = _PARTIAL_CLOSE_RE.sub("", body)
    else:
        inner = body[:close]
    inner = inner.strip()

    leading = text[: match.start()].strip()
    if leading and not is_structure_like(inner):
        return None
    return inner, close is not None


def _find_closing_fence(body: str, marker: str) -> int | None:
    """Locate the fence that closes ``body``.

    A serialized string value never holds a raw newline, so a marker at
    the start of a line (or right after the closing brace/bracket, or
    at the very end of input) is outside the payload.
    """
    for match in re.finditer(re.escape(marker), body):
        before = body[: match.start()].rstrip(" \t")
        if not before or before.endswith(("\n", "}", "]")):
            return match.start()
        if not body[match.end():].strip():
            return match.start()
    return None


def is_plain_text(text: str) -> bool:
    """True if ``text`` carries no embedded payload and can be shown as is."""
    if not text.strip():
        return True
    if is_partial_fence(text) or is_bare_label(text):
        return False
    if unwrap_fence(text) is not None:
        return False
    if is_structure_like(text):
        return False
    return not (looks_like_key_value(text) or starts_with_label(text))


def is_appendable_chunk(chunk: str) -> bool:
    """Return False for chunks that are only wrapper syntax.

    Whitespace-only chunks are kept so streamed newlines survive; a lone
    comma or period is prose punctuation.
    """
    if not chunk:
        return False
    stripped = chunk.strip()
    if not stripped:
        return True
    if stripped in (",", "."):
        return True
    if _STRUCTURE_ONLY_RE.fullmatch(stripped):
        return False
    return not (chunk == stripped and stripped in _WRAPPER_TOKENS)


def strip_fragment_noise(text: str) -> str:
    """Strip a leading ``"": "`` (or ``": "``) and a trailing ``"}`` boundary artifact.

    Only these two edges are touched; text without them is returned
    unchanged.
    """
    text = _LEADING_NOISE_RE.sub("", text, count=1)
    return _TRAILING_NOISE_RE.sub("", text, count=1)


def unescape_newlines_and_tabs(text: str) -> str:
    """Turn literal backslash-n / backslash-t left by double encoding into real ones."""
    return text.replace("\\n", "\n").replace("\\t", "\t")
