"""Configuration schemas.

Loaded from defaults.toml by inkwell.settings. Every field has a
default so an empty or partial TOML file still yields a usable config.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from inkwell.schemas.streaming import ExtractMode


class ReplayConfig(BaseModel):
    """Options for replaying a captured stream in the CLI."""

    delay: float = Field(
        default=0.0, ge=0.0, description="Seconds to wait between replayed events"
    )
    show_raw: bool = Field(
        default=False, description="Show the raw event payload next to each chunk"
    )
    show_preview: bool = Field(
        default=True,
        description="Show the normalized raw-stream preview in the final panel",
    )


class StreamConfig(BaseModel):
    """Top-level normalizer configuration."""

    mode: ExtractMode = Field(
        default=ExtractMode.STRUCTURED,
        description="Extraction mode for chunk and complete events",
    )
    replay: ReplayConfig = Field(default_factory=ReplayConfig)
