"""Chunk and complete extractors for generation event streams.

The transport hands every content-chunk event to extract_chunk() and
the terminal event to extract_complete(). Both probe the event's fields
in a fixed priority order and route anything that looks like an
embedded payload through decode_embedded(), so the display layer only
ever receives plain text.

The *_content_only variants serve streams known to carry raw markdown:
they pick the field and return it without any decoding.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from inkwell.streaming.decoder import decode_embedded
from inkwell.streaming.sniff import (
    is_appendable_chunk,
    is_plain_text,
    strip_fragment_noise,
    unescape_newlines_and_tabs,
)

logger = logging.getLogger(__name__)

# Chunk fields probed in priority order.
_CHUNK_FIELDS = ("content", "text", "delta")

# Values of a chunk's "field" tag that carry the document body.
_BODY_FIELDS = frozenset({"content", "text", "body"})


def _is_body_chunk(event: Mapping[str, Any]) -> bool:
    """A chunk tagged with a non-body ``field`` (title, metaDescription...) is skipped."""
    field = event.get("field")
    if isinstance(field, str) and field.strip():
        return field.strip().lower() in _BODY_FIELDS
    return True


def _chunk_field(event: Mapping[str, Any]) -> str | None:
    for key in _CHUNK_FIELDS:
        value = event.get(key)
        if isinstance(value, str) and value:
            return value

    blog_post = event.get("blogPost")
    if isinstance(blog_post, Mapping):
        value = blog_post.get("content")
        if isinstance(value, str) and value:
            return value
    return None


def _choice_delta(event: Mapping[str, Any]) -> str | None:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, Mapping):
        return None
    delta = first.get("delta")
    if not isinstance(delta, Mapping):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


def chunk_candidate(event: Any) -> str | None:
    """Return the raw text a chunk event carries, before any decoding.

    Probes ``content``, ``text``, ``delta`` and ``blogPost.content`` for
    the first non-empty string, then ``choices[0].delta.content``.
    """
    if isinstance(event, str):
        return event
    if not isinstance(event, Mapping) or not _is_body_chunk(event):
        return None
    value = _chunk_field(event)
    return value if value is not None else _choice_delta(event)


def extract_chunk(event: Any) -> str:
    """Extract the display text one chunk event adds to the buffer.

    Args:
        event: A decoded event mapping, or a raw string the transport
            could not interpret.

    Returns:
        The text to append, or ``""`` when the event carries nothing
        displayable (yet).
    """
    if isinstance(event, str):
        return decode_embedded(event)
    if not isinstance(event, Mapping) or not _is_body_chunk(event):
        return ""

    value = _chunk_field(event)
    if value is not None:
        return _display_chunk(value)

    # OpenAI-style delta, passed through verbatim
    return _choice_delta(event) or ""


def _display_chunk(candidate: str) -> str:
    if is_plain_text(candidate):
        return candidate if is_appendable_chunk(candidate) else ""
    decoded = decode_embedded(candidate)
    if not decoded or not is_appendable_chunk(decoded):
        return ""
    return unescape_newlines_and_tabs(decoded)


def complete_candidate(event: Any) -> str | None:
    """Return the authoritative text field of a terminal event, undecoded.

    Probes ``content``, ``text``, ``overview``, ``blogPost`` (string or
    its ``content``), ``result`` (string or its ``content``) and
    ``data.content``. The first string found wins, even when empty.
    """
    if isinstance(event, str):
        return event
    if not isinstance(event, Mapping):
        return None

    for key in ("content", "text", "overview"):
        value = event.get(key)
        if isinstance(value, str):
            return value

    for key in ("blogPost", "result"):
        wrapped = event.get(key)
        if isinstance(wrapped, str):
            return wrapped
        if isinstance(wrapped, Mapping) and isinstance(wrapped.get("content"), str):
            return wrapped["content"]

    envelope = event.get("data")
    if isinstance(envelope, Mapping) and isinstance(envelope.get("content"), str):
        return envelope["content"]
    return None


def extract_complete(event: Any) -> str:
    """Extract the final display text from a terminal event.

    Plain prose and markup are returned verbatim. Fenced or serialized
    payloads are decoded down to their ``content`` value.

    Args:
        event: The terminal event mapping (or a raw string).

    Returns:
        The authoritative final text, or ``""`` when the event carries
        none (for example an error-only completion).
    """
    content = complete_candidate(event)
    if not content:
        return ""
    if is_plain_text(content):
        return content
    decoded = decode_embedded(content)
    if not decoded:
        logger.debug("Terminal event payload had no displayable content")
        return ""
    return unescape_newlines_and_tabs(decoded)


def normalize_content(text: str) -> str:
    """Normalize a whole stored or accumulated string for display.

    Unlike extract_complete(), boundary noise left by chunked
    accumulation is also trimmed from recovered text.

    Returns:
        The displayable text, or ``""`` if nothing can be recovered.
    """
    if not isinstance(text, str) or not text.strip():
        return ""
    if is_plain_text(text):
        return text
    return strip_fragment_noise(extract_complete(text))


def chunk_content_only(event: Any) -> str:
    """Return a content-only chunk exactly as sent."""
    if isinstance(event, str):
        return event
    if not isinstance(event, Mapping):
        return ""
    value = event.get("content")
    if value is None:
        value = event.get("text")
    return value if isinstance(value, str) else ""


def complete_content_only(event: Any) -> str:
    """Return the full content of a content-only stream exactly as sent."""
    return chunk_content_only(event)
