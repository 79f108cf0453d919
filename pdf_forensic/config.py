"""
Analysis settings for the PDF forensic engine.

Settings come from three layers, later ones winning:
built-in defaults, an optional YAML/JSON settings file, and the
PDF_FORENSIC_TOOL_MODE / PDF_FORENSIC_TOOL_TIMEOUT environment variables.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_VAR_TOOL_MODE = "PDF_FORENSIC_TOOL_MODE"
ENV_VAR_TOOL_TIMEOUT = "PDF_FORENSIC_TOOL_TIMEOUT"

DEFAULT_TOOL_SEARCH_PATHS = [
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/usr/bin",
    "/opt/local/bin",
]


class ToolMode(str, Enum):
    """
    External tool operating modes.

    AUTO: Use mutool/exiftool when they can be found (default)
    OFF: Never invoke external tools
    """

    AUTO = "auto"
    OFF = "off"

    @classmethod
    def from_string(cls, mode_str: str) -> "ToolMode":
        """
        Parse a tool mode from a string.

        Raises:
            ValueError: If the string is not a known mode
        """
        mode_str = mode_str.lower().strip()
        try:
            return cls(mode_str)
        except ValueError:
            raise ValueError(
                f"Invalid tool mode: '{mode_str}'. "
                f"Must be one of: {', '.join(m.value for m in cls)}"
            )


class Thresholds(BaseModel):
    """Load-bearing decision thresholds."""
    visual_match_ssim: float = Field(0.98, description="Average SSIM required for a visual match", ge=0.0, le=1.0)
    text_finding_similarity: float = Field(0.95, description="Overall text similarity below this yields a finding", ge=0.0, le=1.0)
    page_text_finding_similarity: float = Field(0.9, description="Per-page text similarity below this yields a finding", ge=0.0, le=1.0)
    page_size_tolerance: float = Field(1.0, description="Page size tolerance in points", ge=0.0)
    signature_coverage_slack: int = Field(100, description="Bytes allowed between byte range end and file end", ge=0)


class AnalysisSettings(BaseModel):
    """Engine-wide settings."""
    render_dpi: int = Field(150, description="Rasterisation resolution for visual comparison", gt=0)
    tool_timeout: float = Field(30.0, description="Per-invocation external tool timeout (seconds)", gt=0)
    tool_search_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_TOOL_SEARCH_PATHS))
    tool_mode: ToolMode = Field(ToolMode.AUTO, description="Whether external tools are used")
    thresholds: Thresholds = Field(default_factory=Thresholds)

    @property
    def tools_enabled(self) -> bool:
        return self.tool_mode != ToolMode.OFF


def _apply_environment(settings: AnalysisSettings) -> AnalysisSettings:
    updates = {}

    mode_str = os.environ.get(ENV_VAR_TOOL_MODE)
    if mode_str:
        try:
            updates["tool_mode"] = ToolMode.from_string(mode_str)
        except ValueError as e:
            logger.warning(f"{e}. Keeping {settings.tool_mode.value} mode.")

    timeout_str = os.environ.get(ENV_VAR_TOOL_TIMEOUT)
    if timeout_str:
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                raise ValueError(timeout_str)
            updates["tool_timeout"] = timeout
        except ValueError:
            logger.warning(f"Ignoring invalid {ENV_VAR_TOOL_TIMEOUT}: '{timeout_str}'")

    if updates:
        settings = settings.model_copy(update=updates)
    return settings


def load_settings(path: Optional[Union[str, Path]] = None) -> AnalysisSettings:
    """
    Load analysis settings.

    Args:
        path: Optional YAML (.yaml/.yml) or JSON settings file

    Returns:
        AnalysisSettings with file values and environment overrides applied

    Raises:
        FileNotFoundError: If the settings file does not exist
        ValueError: If the file format is unsupported or malformed
    """
    data = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        suffix = path.suffix.lower()
        with open(path, "r", encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported format: {suffix}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a mapping")
        logger.debug(f"Loaded settings from {path}")

    settings = AnalysisSettings.model_validate(data)
    return _apply_environment(settings)
