"""TOML configuration loader.

Loads normalizer defaults from defaults.toml into a StreamConfig.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from inkwell.schemas.config import ReplayConfig, StreamConfig
from inkwell.schemas.streaming import ExtractMode

logger = logging.getLogger(__name__)

# Default config directory relative to the inkwell package
_CONFIG_DIR = Path(__file__).parent / "config"


def default_config_path() -> Path:
    """Path of the defaults.toml shipped with the package."""
    return _CONFIG_DIR / "defaults.toml"


def load_stream_config(config_path: Path | None = None) -> StreamConfig:
    """Load normalizer settings from a TOML file.

    Args:
        config_path: Path to a TOML file. Defaults to inkwell/config/defaults.toml.

    Returns:
        StreamConfig with values from the TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If a section or value is invalid.
    """
    path = config_path or default_config_path()
    if not path.exists():
        raise FileNotFoundError(f"Stream config not found: {path}")

    with open(path, "rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

    stream_section = raw.get("stream", {})
    replay_section = raw.get("replay", {})
    if not isinstance(stream_section, dict) or not isinstance(replay_section, dict):
        raise ValueError(f"[stream] and [replay] must be tables in {path}")

    try:
        config = StreamConfig(
            mode=ExtractMode(stream_section.get("mode", ExtractMode.STRUCTURED)),
            replay=ReplayConfig(**replay_section),
        )
    except ValidationError as e:
        raise ValueError(f"Invalid stream config in {path}: {e}") from e

    logger.debug("Loaded stream config from %s", path)
    return config
