"""Captured event streams.

Reads recordings of real transport traffic so extraction behavior can
be replayed and checked against what the generator actually sent.
Two line formats are accepted:

    content-chunk<TAB>{"content": "Hello "}
    {"event": "complete", "data": {"content": "Hello world"}}

The first is what the streaming testbed logs; the second is one JSON
object per line. Payloads that are not JSON are kept as raw strings.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from inkwell.schemas.streaming import CapturedEvent, StreamEventKind
from inkwell.streaming.session import StreamSession

logger = logging.getLogger(__name__)


def parse_capture_line(line: str, lineno: int = 0) -> CapturedEvent | None:
    """Parse one capture line.

    Returns:
        The captured event, or None for blank lines and ``#`` comments.

    Raises:
        ValueError: If the line names an unknown event or is malformed.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    if "\t" in line and not stripped.startswith("{"):
        kind, _, body = line.rstrip("\r\n").partition("\t")
        payload = _decode_payload(body)
    else:
        try:
            record = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Line {lineno}: not a capture record: {e.msg}") from e
        if not isinstance(record, dict) or "event" not in record:
            raise ValueError(f"Line {lineno}: JSON record needs an 'event' key")
        kind = record["event"]
        payload = record.get("data")

    try:
        event_kind = StreamEventKind(str(kind).strip())
    except ValueError as e:
        valid = ", ".join(k.value for k in StreamEventKind)
        raise ValueError(
            f"Line {lineno}: unknown event {kind!r} (expected one of: {valid})"
        ) from e

    try:
        return CapturedEvent(kind=event_kind, payload=payload, lineno=lineno)
    except ValidationError as e:
        raise ValueError(
            f"Line {lineno}: {event_kind.value} payload must be an object or a string, "
            f"got {type(payload).__name__}"
        ) from e


def _decode_payload(body: str) -> dict | str | None:
    """Decode a tab-format payload; non-object JSON and plain text stay strings."""
    if not body:
        return None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(payload, (dict, str)):
        return payload
    return body


def load_capture(path: Path) -> list[CapturedEvent]:
    """Load every event from a capture file, in recorded order.

    Raises:
        FileNotFoundError: If the capture file does not exist.
        ValueError: If any line is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Capture file not found: {path}")

    events: list[CapturedEvent] = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            event = parse_capture_line(line, lineno)
            if event is not None:
                events.append(event)

    logger.debug("Loaded %d events from %s", len(events), path)
    return events


def replay(
    events: Iterable[CapturedEvent],
    session: StreamSession | None = None,
    *,
    delay: float = 0.0,
) -> StreamSession:
    """Feed captured events through a session in order.

    Replay stops at the first terminal (complete or error) event.

    Args:
        events: Captured events in delivery order.
        session: Session to feed. A structured-mode session is created if omitted.
        delay: Seconds to sleep before each event after the first.

    Returns:
        The session, holding the final text.
    """
    session = session or StreamSession()
    session.start()
    for i, event in enumerate(events):
        if delay and i:
            time.sleep(delay)
        if event.kind == StreamEventKind.CHUNK:
            session.on_chunk(event.payload)
        elif event.kind == StreamEventKind.COMPLETE:
            session.on_complete(event.payload)
            break
        else:
            session.on_error(event.payload)
            break
    return session
