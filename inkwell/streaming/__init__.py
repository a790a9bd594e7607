"""Streaming content normalization: extractors, decoder, session, captures."""

from inkwell.streaming.capture import load_capture, parse_capture_line, replay
from inkwell.streaming.decoder import decode_embedded, flatten_document
from inkwell.streaming.extract import (
    chunk_content_only,
    complete_content_only,
    extract_chunk,
    extract_complete,
    normalize_content,
)
from inkwell.streaming.session import StreamSession

__all__ = [
    "StreamSession",
    "chunk_content_only",
    "complete_content_only",
    "decode_embedded",
    "extract_chunk",
    "extract_complete",
    "flatten_document",
    "load_capture",
    "normalize_content",
    "parse_capture_line",
    "replay",
]
