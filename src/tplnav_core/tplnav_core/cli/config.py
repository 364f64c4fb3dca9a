# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Central tplnav configuration.

All values have sensible defaults. A workspace may carry a ``.tplnav.yaml``
file, and every value can be overridden via environment variables using the
``TPLNAV_`` prefix:

  TPLNAV_LOG_LEVEL                 Log level (default: WARNING)
  TPLNAV_LOG_FORMAT                Log output format, rich or json
                                    (default: rich)
  TPLNAV_GRAPH_SUB_PATH            Sub-directory scanned by ``tplnav graph``
                                    (default: whole workspace)
  TPLNAV_GRAPH_DEPTH               Hops each way for scoped file graphs, 1-10
                                    (default: 1)
  TPLNAV_SEARCH_MAX_RESULTS        Results shown by ``tplnav search``
                                    (default: 20)
  TPLNAV_REQUIRED_PARAMETER_COLOR  Hex color used to mark required parameters
                                    (default: #E06C75)

Precedence, highest first: environment, ``.tplnav.yaml``, defaults.
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_NAME = ".tplnav.yaml"

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"})
_VALID_LOG_FORMATS = frozenset({"rich", "json"})
_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class TemplateNavigatorConfig(BaseSettings):
    """Central tplnav configuration.

    Instantiate with ``TemplateNavigatorConfig()`` to read defaults and any
    ``TPLNAV_*`` environment variable overrides automatically. Keyword
    arguments (how ``.tplnav.yaml`` values are passed in) rank below the
    environment.
    """

    model_config = SettingsConfigDict(env_prefix="TPLNAV_", extra="forbid")

    # ── Logging configuration ──────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: str = "rich"

    # ── Graph configuration ────────────────────────────────────────────────
    graph_sub_path: Optional[str] = None
    graph_depth: int = 1

    # ── Search / display configuration ─────────────────────────────────────
    search_max_results: int = 20
    required_parameter_color: str = "#E06C75"

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        return (env_settings, init_settings)

    # ── Validators ─────────────────────────────────────────────────────────

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level={v!r} is not a valid log level. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def _valid_log_format(cls, v: str) -> str:
        if v.lower() not in _VALID_LOG_FORMATS:
            raise ValueError(
                f"log_format={v!r} is not supported. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_FORMATS))}"
            )
        return v.lower()

    @field_validator("graph_sub_path")
    @classmethod
    def _valid_sub_path(cls, v: Optional[str]) -> Optional[str]:
        # Blank means "whole workspace".
        if v is None or not v.strip():
            return None
        if ".." in v.replace("\\", "/").split("/"):
            raise ValueError(f"graph_sub_path={v!r} must stay inside the workspace")
        return v.strip()

    @field_validator("graph_depth")
    @classmethod
    def _valid_graph_depth(cls, v: int) -> int:
        if not (1 <= v <= 10):
            raise ValueError(f"graph_depth={v} is outside the valid range (1-10)")
        return v

    @field_validator("search_max_results")
    @classmethod
    def _valid_positive(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name}={v} must be >= 1")
        return v

    @field_validator("required_parameter_color")
    @classmethod
    def _valid_color(cls, v: str) -> str:
        if not _HEX_COLOR_RE.match(v):
            raise ValueError(f"required_parameter_color={v!r} is not a hex color such as '#E06C75'")
        return v


def read_config_file(workspace_root: str) -> Dict[str, Any]:
    """Return the settings in ``<workspace_root>/.tplnav.yaml``, or ``{}`` if there is none.

    Raises ``ValueError`` when the file is not a YAML mapping, and lets
    ``yaml.YAMLError`` through for malformed YAML.
    """
    path = os.path.join(workspace_root, CONFIG_FILE_NAME)
    if not os.path.isfile(path):
        return {}
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of settings, got {type(data).__name__}")
    return {str(k).replace("-", "_"): v for k, v in data.items()}


# ── Module-level singleton ─────────────────────────────────────────────────────

_config: Optional[TemplateNavigatorConfig] = None


def get_config() -> TemplateNavigatorConfig:
    """Return the process-wide config singleton.

    Creates a fresh ``TemplateNavigatorConfig`` on first call (reading env
    vars only). Call ``load_config()`` first to include a workspace file.
    """
    global _config
    if _config is None:
        _config = TemplateNavigatorConfig()
    return _config


def load_config(workspace_root: Optional[str] = None) -> TemplateNavigatorConfig:
    """Build, validate, cache and return the config for *workspace_root*.

    Raises ``pydantic.ValidationError`` with a clear message if any value is
    invalid. Call this once at CLI startup to surface config errors before any
    analysis work begins.
    """
    global _config
    file_values = read_config_file(workspace_root) if workspace_root else {}
    cfg = TemplateNavigatorConfig(**file_values)
    _config = cfg
    return cfg
