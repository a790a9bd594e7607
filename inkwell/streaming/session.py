"""Per-generation stream session.

Owns the accumulated display buffer for one generation and wires the
transport's three callbacks (chunk, complete, error) to the extractors.
Listeners receive a SessionEvent for every transition, the same way
the dashboard receives pipeline events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from inkwell.schemas.streaming import (
    ExtractMode,
    SessionEvent,
    SessionEventType,
    StreamChunk,
    StreamStatus,
)
from inkwell.streaming.extract import (
    chunk_candidate,
    chunk_content_only,
    complete_content_only,
    extract_chunk,
    extract_complete,
    normalize_content,
)
from inkwell.streaming.sniff import is_plain_text

logger = logging.getLogger(__name__)

# Type alias for session listener callbacks
SessionListener = Callable[[SessionEvent], Any]

_DEFAULT_ERROR = "Stream error"


class StreamSession:
    """Accumulates normalized text for a single generation session.

    Events must be fed in delivery order. ``text`` is the concatenation
    of chunk outputs until the terminal event replaces it; ``raw`` keeps
    the undecoded chunk text so preview() can re-normalize the whole
    stream as it grows.
    """

    def __init__(self, mode: ExtractMode = ExtractMode.STRUCTURED) -> None:
        self.mode = mode
        self.status = StreamStatus.IDLE
        self.text = ""
        self.raw = ""
        self.error: str | None = None
        self.chunk_count = 0
        self._listeners: list[SessionListener] = []
        self._history: list[SessionEvent] = []

    @property
    def history(self) -> list[SessionEvent]:
        """All events emitted so far."""
        return list(self._history)

    @property
    def is_streaming(self) -> bool:
        return self.status == StreamStatus.STREAMING

    def add_listener(self, listener: SessionListener) -> None:
        """Register a listener to receive session events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        """Remove a previously registered listener."""
        self._listeners = [ln for ln in self._listeners if ln is not listener]

    def start(self) -> None:
        """Reset the buffer for a new generation."""
        self.status = StreamStatus.STREAMING
        self.text = ""
        self.raw = ""
        self.error = None
        self.chunk_count = 0
        self._emit(SessionEventType.STARTED, mode=self.mode.value)

    def on_chunk(self, event: Any) -> StreamChunk:
        """Apply one content-chunk event and return what it contributed.

        A chunk arriving outside a live stream starts a new generation.
        """
        if self.status != StreamStatus.STREAMING:
            self.start()

        if self.mode == ExtractMode.CONTENT_ONLY:
            delta = chunk_content_only(event)
            raw = delta
        else:
            delta = extract_chunk(event)
            raw = chunk_candidate(event) or ""

        self.chunk_count += 1
        self.raw += raw
        self.text += delta

        chunk = StreamChunk(
            delta=delta,
            accumulated=self.text,
            chunk_count=self.chunk_count,
            dropped=not delta,
        )
        self._emit(SessionEventType.CHUNK, delta=delta, dropped=chunk.dropped)
        return chunk

    def on_complete(self, event: Any) -> StreamChunk:
        """Apply the terminal event.

        The authoritative final text replaces the buffer when the event
        carries any; an empty completion keeps what was streamed.
        """
        if self.mode == ExtractMode.CONTENT_ONLY:
            final = complete_content_only(event)
        else:
            final = extract_complete(event)

        if final:
            self.text = final
        self.status = StreamStatus.COMPLETE
        logger.info(
            "Stream complete after %d chunks (%d chars)",
            self.chunk_count, len(self.text),
        )
        self._emit(SessionEventType.COMPLETE, replaced=bool(final), length=len(self.text))
        return StreamChunk(
            delta="",
            accumulated=self.text,
            chunk_count=self.chunk_count,
            dropped=not final,
            is_complete=True,
        )

    def on_error(self, event: Any = None) -> None:
        """Record a transport error. The buffer is kept as is."""
        message = _DEFAULT_ERROR
        if isinstance(event, Mapping) and isinstance(event.get("message"), str):
            message = event["message"] or _DEFAULT_ERROR
        elif isinstance(event, str) and event:
            message = event

        self.error = message
        self.status = StreamStatus.ERROR
        logger.warning("Stream error: %s", message)
        self._emit(SessionEventType.ERROR, message=message)

    def preview(self) -> str:
        """Display text re-normalized from everything received so far.

        Grows monotonically while a fenced or serialized payload streams
        in piecewise, where per-chunk extraction cannot see the keys.
        """
        if self.status == StreamStatus.COMPLETE or self.mode == ExtractMode.CONTENT_ONLY:
            return self.text
        if not self.raw or is_plain_text(self.raw):
            return self.text
        return normalize_content(self.raw)

    def _emit(self, event_type: SessionEventType, **data: Any) -> None:
        """Dispatch a session event to every listener.

        Listener exceptions are logged but never propagate.
        """
        event = SessionEvent(type=event_type, data=data)
        self._history.append(event)

        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener error for %s", event_type)
