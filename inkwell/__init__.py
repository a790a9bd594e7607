"""Inkwell: turns generation event streams into displayable prose."""

__version__ = "0.4.0"

from .streaming import (
    StreamSession,
    decode_embedded,
    extract_chunk,
    extract_complete,
    flatten_document,
    normalize_content,
)

__all__ = [
    "StreamSession",
    "decode_embedded",
    "extract_chunk",
    "extract_complete",
    "flatten_document",
    "normalize_content",
]
