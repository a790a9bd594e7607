"""Inkwell CLI: Typer + Rich terminal interface.

Commands: replay, decode, config.
Replays captured generation streams through the normalizer so its
output can be checked against what the generator actually sent.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from inkwell import __version__
from inkwell.schemas.config import StreamConfig
from inkwell.schemas.streaming import (
    ExtractMode,
    SessionEvent,
    SessionEventType,
    StreamEventKind,
)
from inkwell.settings import default_config_path, load_stream_config
from inkwell.streaming.capture import load_capture, replay as replay_events
from inkwell.streaming.decoder import decode_embedded
from inkwell.streaming.session import StreamSession

console = Console()

# ── App and sub-apps ─────────────────────────────────────────────

app = typer.Typer(
    name="inkwell",
    help="Normalize streamed generation output into displayable prose.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    name="config",
    help="Show normalizer configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"inkwell {__version__}")
        raise typer.Exit()


# ── App Callback ────────────────────────────────────────────────


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log decoder and session activity to stderr.",
    ),
) -> None:
    """Inkwell: streaming content normalizer."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


# ── Helpers ──────────────────────────────────────────────────────


def _load_config(config_file: str) -> StreamConfig:
    """Load stream config, exit on error."""
    try:
        return load_stream_config(Path(config_file) if config_file else None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _show(text: str) -> str:
    """Render control characters visibly for the event table."""
    if not text:
        return "[dim](empty)[/dim]"
    return escape(text.replace("\n", "\\n").replace("\t", "\\t"))


def _show_payload(payload: dict | str | None) -> str:
    if payload is None:
        return ""
    if isinstance(payload, dict):
        return _show(json.dumps(payload, ensure_ascii=False))
    return _show(payload)


# ── inkwell replay ───────────────────────────────────────────────


@app.command()
def replay(
    capture: str = typer.Argument(..., help="Captured event stream file"),
    mode: str = typer.Option(
        None, "--mode", "-m",
        help="Override extraction mode: structured, content_only",
    ),
    delay: float = typer.Option(
        None, "--delay",
        help="Seconds between replayed events (overrides config)",
    ),
    show_raw: bool = typer.Option(
        False, "--show-raw",
        help="Show each raw event payload",
    ),
    config_file: str = typer.Option(
        "", "--config", "-c",
        help="Path to a TOML config file",
    ),
) -> None:
    """Replay a captured stream and show what each event contributes."""
    config = _load_config(config_file)
    try:
        extract_mode = ExtractMode(mode) if mode else config.mode
    except ValueError:
        console.print(f"[red]Invalid mode:[/red] {mode}")
        raise typer.Exit(1) from None

    capture_path = Path(capture)
    try:
        events = load_capture(capture_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading capture:[/red] {e}")
        raise typer.Exit(1) from None

    session = StreamSession(mode=extract_mode)
    show_raw = show_raw or config.replay.show_raw

    table = Table(title=f"Replay: {capture_path.name}", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Display text")
    if show_raw:
        table.add_column("Raw payload", style="dim")

    by_line = iter(events)

    def _record(event: SessionEvent) -> None:
        if event.type == SessionEventType.STARTED:
            return
        captured = next(by_line, None)
        lineno = str(captured.lineno) if captured else ""
        raw = _show_payload(captured.payload) if captured else ""
        if event.type == SessionEventType.CHUNK:
            cells = [lineno, StreamEventKind.CHUNK.value, _show(event.data["delta"])]
        elif event.type == SessionEventType.COMPLETE:
            label = "[green]replaced[/green]" if event.data["replaced"] else "[dim](kept buffer)[/dim]"
            cells = [lineno, StreamEventKind.COMPLETE.value, label]
        else:
            cells = [lineno, StreamEventKind.ERROR.value, f"[red]{escape(event.data['message'])}[/red]"]
        if show_raw:
            cells.append(raw)
        table.add_row(*cells)

    session.add_listener(_record)
    replay_events(
        events, session,
        delay=config.replay.delay if delay is None else delay,
    )

    console.print(table)
    console.print()
    console.print(Panel(
        escape(session.text) or "[dim](no displayable text)[/dim]",
        title=f"Final text ({session.status.value})",
        border_style="green" if session.error is None else "red",
    ))
    if config.replay.show_preview and session.raw and session.preview() != session.text:
        console.print(Panel(
            escape(session.preview()) or "[dim](no displayable text)[/dim]",
            title="Raw-stream preview",
            border_style="blue",
        ))
    if session.error is not None:
        raise typer.Exit(1)


# ── inkwell decode ───────────────────────────────────────────────


@app.command()
def decode(
    text: str = typer.Argument("-", help="Payload to decode, or '-' to read stdin"),
) -> None:
    """Decode one embedded payload and print its displayable text."""
    raw = sys.stdin.read() if text == "-" else text
    result = decode_embedded(raw)
    if not result:
        console.print("[yellow]No displayable text recovered.[/yellow]", highlight=False)
        raise typer.Exit(1)
    console.print(escape(result), highlight=False)


# ── inkwell config ───────────────────────────────────────────────


@config_app.command("show")
def config_show(
    config_file: str = typer.Option(
        "", "--config", "-c",
        help="Path to a TOML config file",
    ),
) -> None:
    """Show the effective normalizer configuration."""
    config = _load_config(config_file)

    table = Table(title="Stream Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Config File", config_file or str(default_config_path()))
    table.add_row("Mode", config.mode.value)
    table.add_row("Replay Delay", f"{config.replay.delay}s")
    table.add_row("Show Raw", str(config.replay.show_raw))
    table.add_row("Show Preview", str(config.replay.show_preview))

    console.print(table)
