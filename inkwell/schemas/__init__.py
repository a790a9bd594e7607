"""Inkwell schema definitions.

All Pydantic v2 models and enums shared by the streaming layer, the
settings loader, and the CLI.
"""

from inkwell.schemas.config import ReplayConfig, StreamConfig
from inkwell.schemas.streaming import (
    CapturedEvent,
    ExtractMode,
    SessionEvent,
    SessionEventType,
    StreamChunk,
    StreamEventKind,
    StreamStatus,
)

__all__ = [
    "CapturedEvent",
    "ExtractMode",
    "ReplayConfig",
    "SessionEvent",
    "SessionEventType",
    "StreamChunk",
    "StreamConfig",
    "StreamEventKind",
    "StreamStatus",
]
