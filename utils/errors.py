"""Error types raised by the smoke test runner."""

from __future__ import annotations


class SmokeTestError(RuntimeError):
    """Base class for every error the runner reports by itself."""


class ConfigError(SmokeTestError):
    """The configuration file is missing or does not validate."""


class DiscoveryError(SmokeTestError):
    """The documents directory cannot be walked."""


class ScanError(SmokeTestError):
    """A markdown document could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to read {path}: {reason}")
        self.path = path
        self.reason = reason


class SpawnError(SmokeTestError):
    """A compiler or test executable could not be started."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"failed to execute {executable}: {reason}")
        self.executable = executable
        self.reason = reason


class CommandTimeout(SmokeTestError):
    def __init__(self, executable: str, timeout_seconds: float) -> None:
        super().__init__(
            f"{executable} did not finish within {timeout_seconds:g}s and was killed"
        )
        self.executable = executable
        self.timeout_seconds = timeout_seconds
