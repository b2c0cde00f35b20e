"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepairConfig(BaseModel):
    """Post-repair transformations applied before handing a transcript out."""

    reasoning_first: bool = False  # Move reasoning ahead of tool calls (extended thinking)
    reasoning_placeholder: str | None = "[Planning tool usage]"
    tool_call_id_mode: Literal["off", "strict", "strict9"] = "off"


class DiagnosticsConfig(BaseModel):
    """Structure dumps written to the log around a repair."""

    log_structure: bool = True
    detailed: bool = False  # Include ids and content previews (internal logs only)
    preview_chars: int = Field(default=50, ge=0)


class Config(BaseSettings):
    """Root configuration for turnguard."""

    repair: RepairConfig = Field(default_factory=RepairConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)

    model_config = SettingsConfigDict(
        env_prefix="TURNGUARD_",
        env_nested_delimiter="__",
    )
