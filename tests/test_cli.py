"""Tests for the Inkwell CLI.

Covers replay, decode and config show via CliRunner.
"""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from inkwell import __version__
from inkwell.cli import app

# NO_COLOR=1 prevents Rich from injecting ANSI codes inside option names,
# which breaks substring matching in CI (headless, no TTY).
# COLUMNS=200 prevents wrapping that could split a flag across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


# ── Factories ──────────────────────────────────────────────────────


def _capture(tmp_path: Path, *records: tuple[str, object]) -> Path:
    lines = [f"{kind}\t{json.dumps(data)}" for kind, data in records]
    path = tmp_path / "stream.log"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


# ── App ───────────────────────────────────────────────────────────


class TestApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"inkwell {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("replay", "decode", "config"):
            assert command in result.output


# ── replay ────────────────────────────────────────────────────────


class TestReplay:
    def test_final_text(self, tmp_path):
        path = _capture(
            tmp_path,
            ("content-chunk", {"content": "Hello "}),
            ("content-chunk", {"content": "world"}),
            ("complete", {"content": '```json\n{"title": "T", "content": "Hello world"}\n```'}),
        )
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "Replay: stream.log" in result.output
        assert "Final text (complete)" in result.output
        assert "Hello world" in result.output
        assert "replaced" in result.output

    def test_show_raw(self, tmp_path):
        path = _capture(tmp_path, ("content-chunk", {"content": "Hi"}))
        result = runner.invoke(app, ["replay", str(path), "--show-raw"])
        assert result.exit_code == 0
        assert "Raw payload" in result.output

    def test_content_only_mode(self, tmp_path):
        path = _capture(tmp_path, ("content-chunk", {"content": "{x}"}))
        result = runner.invoke(app, ["replay", str(path), "--mode", "content_only"])
        assert result.exit_code == 0
        assert "{x}" in result.output
        assert "Final text (streaming)" in result.output

    def test_stream_error_exits_nonzero(self, tmp_path):
        path = _capture(
            tmp_path,
            ("content-chunk", {"content": "partial"}),
            ("error", {"message": "upstream timeout"}),
        )
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "upstream timeout" in result.output
        assert "Final text (error)" in result.output

    def test_invalid_mode(self, tmp_path):
        path = _capture(tmp_path, ("content-chunk", {"content": "Hi"}))
        result = runner.invoke(app, ["replay", str(path), "--mode", "verbatim"])
        assert result.exit_code == 1
        assert "Invalid mode" in result.output

    def test_missing_capture(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "missing.log")])
        assert result.exit_code == 1
        assert "Error loading capture" in result.output

    def test_malformed_capture(self, tmp_path):
        path = tmp_path / "bad.log"
        path.write_text("progress\t{}\n", encoding="utf-8")
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "unknown event" in result.output


# ── decode ────────────────────────────────────────────────────────


class TestDecode:
    def test_argument(self):
        result = runner.invoke(app, ["decode", '{"content": "Hi there"}'])
        assert result.exit_code == 0
        assert "Hi there" in result.output

    def test_stdin(self):
        result = runner.invoke(
            app, ["decode"], input='```json\n{"content": "From stdin"}\n```\n',
        )
        assert result.exit_code == 0
        assert "From stdin" in result.output

    def test_nothing_recovered(self):
        result = runner.invoke(app, ["decode", '"title": "X"'])
        assert result.exit_code == 1
        assert "No displayable text recovered" in result.output


# ── config ────────────────────────────────────────────────────────


class TestConfigShow:
    def test_defaults(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Stream Configuration" in result.output
        assert "structured" in result.output

    def test_custom_file(self, tmp_path):
        path = tmp_path / "inkwell.toml"
        path.write_text('[stream]\nmode = "content_only"\n')
        result = runner.invoke(app, ["config", "show", "--config", str(path)])
        assert result.exit_code == 0
        assert "content_only" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["config", "show", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "Error loading config" in result.output
