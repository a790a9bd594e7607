"""Streaming schemas for live content normalization.

Defines the enums and models that flow between a transport, a
StreamSession, and the display layer: captured events, per-chunk
results, and session lifecycle events.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ExtractMode(StrEnum):
    """How chunk and complete events are turned into display text.

    STRUCTURED runs every event through the embedded-payload decoder.
    CONTENT_ONLY trusts the stream to carry raw markdown and only picks
    the content/text field.
    """

    STRUCTURED = "structured"
    CONTENT_ONLY = "content_only"


class StreamEventKind(StrEnum):
    """Event names delivered by the event-stream transport."""

    CHUNK = "content-chunk"
    COMPLETE = "complete"
    ERROR = "error"


class StreamStatus(StrEnum):
    """Lifecycle state of a single generation session."""

    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"


class CapturedEvent(BaseModel):
    """One transport event as recorded in a capture file."""

    kind: StreamEventKind = Field(description="Transport event name")
    payload: dict[str, Any] | str | None = Field(
        default=None, description="Decoded event data, or the raw string"
    )
    lineno: int = Field(default=0, ge=0, description="Source line in the capture file")


class StreamChunk(BaseModel):
    """A single chunk of normalized streaming output."""

    delta: str = Field(description="Display text contributed by this chunk")
    accumulated: str = Field(description="Full display text accumulated so far")
    chunk_count: int = Field(ge=0, description="Chunk events received so far")
    dropped: bool = Field(
        default=False, description="True when the event carried no displayable text"
    )
    is_complete: bool = Field(
        default=False, description="True on the terminal chunk"
    )


class SessionEventType(StrEnum):
    """Types of events a StreamSession emits to its listeners."""

    STARTED = "started"
    CHUNK = "chunk"
    COMPLETE = "complete"
    ERROR = "error"


class SessionEvent(BaseModel):
    """A single session event for listener consumption."""

    type: SessionEventType = Field(description="Event type")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the event occurred",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Event payload, varies by event type",
    )
