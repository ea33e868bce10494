"""Settings for repl-bundler.

Sources, in increasing priority:
1. YAML file (--config, or ./.repl-bundler/settings.yaml when present)
2. Environment variables (REPL_BUNDLER_<FIELD>, e.g. REPL_BUNDLER_PACKAGES_URL)
3. Explicit overrides passed to `load_settings`

The two base URLs have no defaults: they must be supplied before any request
is served.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "REPL_BUNDLER_"
DEFAULT_SETTINGS_PATH = Path(".repl-bundler") / "settings.yaml"


class BundlerSettings(BaseModel):
    """Process-wide configuration, fixed at initialization."""

    packages_url: str = Field(description="Package registry base URL, e.g. https://unpkg.com")
    svelte_url: str = Field(description="Base URL of the svelte runtime modules and compiler")
    fetch_debounce: float = Field(default=0.2, ge=0, description="Seconds to wait before a fresh fetch")
    ssr_enabled: bool = Field(default=False, description="Also bundle the server-rendering target")
    entry: str = Field(default="./App.svelte", description="Entry module of every bundle")
    loop_guard_timeout: int = Field(default=100, description="loopGuardTimeout passed to capable compilers")
    log_path: str | None = Field(default=None, description="JSONL log file; None keeps the default")
    log_level: str = Field(default="INFO")

    @field_validator("packages_url", "svelte_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        content = yaml.safe_load(f) or {}
    if not isinstance(content, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return content


def _read_env() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in BundlerSettings.model_fields:
        env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value is not None:
            values[name] = env_value
    return values


def load_settings(path: Path | str | None = None, **overrides: Any) -> BundlerSettings:
    """Load settings from file, environment and overrides.

    Args:
        path: YAML settings file. If None, the default path is used when it exists.
        **overrides: Highest-priority values; None values are ignored.

    Raises:
        pydantic.ValidationError: Required base URLs missing or values invalid
        FileNotFoundError: An explicit `path` does not exist
    """
    values: dict[str, Any] = {}

    if path is not None:
        values.update(_read_yaml(Path(path)))
    elif DEFAULT_SETTINGS_PATH.exists():
        logger.debug(f"Reading settings from {DEFAULT_SETTINGS_PATH}")
        values.update(_read_yaml(DEFAULT_SETTINGS_PATH))

    values.update(_read_env())
    values.update({key: value for key, value in overrides.items() if value is not None})

    return BundlerSettings.model_validate(values)
