"""Markdown scanner: turns fenced, dogeared samples into TestCase records.

A document is read in a single pass. Fences are toggled by any line that
starts with three backticks. A fence whose info string starts with the target
language is a candidate; its test body begins on the line after the first
exact match of the dogear and ends at the closing fence. Headings are only
recognised outside fences, and each level keeps its last value until another
heading of the same level replaces it.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from models import HEADING_LEVELS, Settings, TestCase
from utils.errors import ScanError

FENCE = "```"

FenceState = Literal["outside", "untagged", "waiting", "collecting"]


def heading_level(line: str) -> int:
    """Number of leading ``#`` characters, or 0 if the line is not a heading."""
    level = len(line) - len(line.lstrip("#"))
    if 1 <= level <= HEADING_LEVELS:
        return level
    return 0


def split_lines(text: str) -> list[str]:
    return [line.removesuffix("\r") for line in text.split("\n")]


def scan_lines(
    lines: Iterable[str],
    language: str,
    dogear: str,
    *,
    source_path: str = "",
    reset_nested_headings: bool = False,
) -> list[TestCase]:
    headings = [""] * HEADING_LEVELS
    cases: list[TestCase] = []
    buffer: list[str] = []
    start_line = 0
    state: FenceState = "outside"
    lang_fence = FENCE + language

    for num, line in enumerate(lines):
        if line.startswith(FENCE):
            if state == "outside":
                state = "waiting" if line.startswith(lang_fence) else "untagged"
                start_line = num
                continue
            if state == "collecting":
                cases.append(
                    TestCase(
                        source_path=source_path,
                        headings=tuple(headings),
                        start_line=start_line,
                        end_line=num,
                        body="\n".join(buffer),
                    )
                )
            buffer = []
            state = "outside"
            continue

        if state == "outside":
            level = heading_level(line)
            if level:
                headings[level - 1] = line[level:].strip()
                if reset_nested_headings:
                    for deeper in range(level, HEADING_LEVELS):
                        headings[deeper] = ""
        elif state == "waiting":
            if line == dogear:
                state = "collecting"
                start_line = num
        elif state == "collecting":
            buffer.append(line)

    # An unterminated fence drops whatever was being collected.
    return cases


def scan(
    text: str,
    language: str,
    dogear: str,
    *,
    source_path: str = "",
    reset_nested_headings: bool = False,
) -> list[TestCase]:
    return scan_lines(
        split_lines(text),
        language,
        dogear,
        source_path=source_path,
        reset_nested_headings=reset_nested_headings,
    )


class Scanner:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def scan_text(self, text: str, *, source_path: str = "") -> list[TestCase]:
        return scan(
            text,
            self.settings.language,
            self.settings.dogear,
            source_path=source_path,
            reset_nested_headings=self.settings.reset_nested_headings,
        )

    def scan_file(self, path: Path) -> list[TestCase]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            raise ScanError(str(path), str(error)) from error
        return self.scan_text(text, source_path=str(path))
