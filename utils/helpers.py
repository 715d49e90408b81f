"""Small helpers: timestamps, text truncation, env-var knobs, elapsed time."""

from __future__ import annotations

import builtins
import os
import time
from datetime import UTC, datetime
from typing import Any


def env_int(name: str, default: int, *, minimum: int = 0) -> int:
    return max(minimum, int(os.environ.get(name, str(default))))


def env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    return max(minimum, float(os.environ.get(name, str(default))))


# ---------------------------------------------------------------------------
# Timestamped print
# ---------------------------------------------------------------------------


def ts() -> str:
    return datetime.now(UTC).strftime("%H:%M:%S")


def tprint(*args: Any, **kwargs: Any) -> None:
    if "flush" not in kwargs:
        kwargs["flush"] = True
    builtins.print(f"[{ts()}]", *args, **kwargs)


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------


def truncate_text(text: str, limit: int = 4000) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n...[truncated]"


def decode_output(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def elapsed_ms(started_mono: float) -> int:
    return int((time.monotonic() - started_mono) * 1000)
