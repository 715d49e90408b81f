"""Configuration loading: config.toml -> validated Settings."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from models import Settings
from utils.errors import ConfigError
from utils.helpers import env_float


def default_job_timeout_seconds() -> float:
    return env_float("SMOKE_JOB_TIMEOUT_SECONDS", 60.0, minimum=1.0)


def parse_settings(raw: dict[str, Any], *, label: str = "config") -> Settings:
    try:
        settings = Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid settings in {label}:\n{e}") from e
    if settings.timeout_seconds is None:
        settings = settings.model_copy(
            update={"timeout_seconds": default_job_timeout_seconds()}
        )
    return settings


def load_settings(path: str | Path) -> Settings:
    config_path = Path(path).expanduser()
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read config {config_path}: {e}") from e
    try:
        raw = tomllib.loads(raw_text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to parse config {config_path}: {e}") from e
    return parse_settings(raw, label=str(config_path))
