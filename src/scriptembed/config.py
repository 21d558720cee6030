"""Configuration for scriptembed.

scriptembed.yaml schema:
- supply_scope: "render" (fresh counter per top-level render) or "process"
  (one counter shared by every render of an environment)
- start: first integer handed out by a new counter
- script_type: type attribute of emitted <script> elements
- fresh_prefix: leading part of generated hygienic names
- escape_script_close: rewrite "</script" inside emitted script text
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from scriptembed.exceptions import ConfigError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "scriptembed.yaml"

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$", flags=re.ASCII)


class EmbedConfig(BaseModel):
    """Settings shared by the embedders and the template environment."""

    model_config = {"extra": "forbid"}

    supply_scope: Literal["render", "process"] = Field(
        default="render", description="Lifetime of the integer supply"
    )
    start: int = Field(default=0, ge=0, description="First integer of a new supply")
    script_type: str = Field(
        default="text/javascript", description="type attribute of <script> elements"
    )
    fresh_prefix: str = Field(
        default="jmId", description="Leading part of hygienic names"
    )
    escape_script_close: bool = Field(
        default=True, description="Rewrite </script inside embedded script text"
    )

    @field_validator("fresh_prefix")
    @classmethod
    def check_fresh_prefix(cls, value: str) -> str:
        if not _JS_IDENTIFIER.match(value):
            raise ValueError(f"not a JavaScript identifier: {value!r}")
        return value


def find_config(start: Path | None = None) -> Path | None:
    """Find scriptembed.yaml in ``start`` (default: cwd) or its parents."""
    cwd = (start or Path.cwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(path: Path) -> EmbedConfig:
    """Load scriptembed.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file is not valid YAML or fails validation.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(str(path), f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")

    try:
        config = EmbedConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(path), str(e)) from e

    log.debug("Loaded config from %s: %s", path, config)
    return config


def save_config(config: EmbedConfig, path: Path) -> None:
    """Save config to scriptembed.yaml."""
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump()

    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
