"""Pydantic models for mkdocs-smoke-test."""

from __future__ import annotations

import json
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

HEADING_LEVELS = 4

LANGUAGE_FLAGS: dict[str, str] = {
    "c": "-xc",
    "cc": "-xc++",
    "cpp": "-xc++",
    "cxx": "-xc++",
    "c++": "-xc++",
}
DEFAULT_LANGUAGE_FLAG = "-xc++"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    language: str = Field(min_length=1)
    compilers: list[str] = Field(min_length=1)
    compiler_options: list[str] = Field(default_factory=list)
    dogear: str = Field(min_length=1)
    language_flag: str | None = None
    timeout_seconds: float | None = Field(default=None, gt=0)
    reset_nested_headings: bool = False

    @property
    def effective_language_flag(self) -> str:
        if self.language_flag:
            return self.language_flag
        return LANGUAGE_FLAGS.get(self.language.lower(), DEFAULT_LANGUAGE_FLAG)


class TestCase(BaseModel):
    """One fenced sample extracted from a markdown document.

    ``headings`` always holds one slot per heading level; empty slots mean no
    heading of that level has been seen yet. ``start_line`` is the dogear
    line and ``end_line`` the closing fence, both 0-based.
    """

    __test__ = False
    model_config = ConfigDict(frozen=True)

    source_path: str
    headings: tuple[str, ...] = ("",) * HEADING_LEVELS
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    body: str

    @property
    def heading(self) -> list[str]:
        return [h for h in self.headings if h]

    def heading_at(self, level: int) -> str:
        if not 1 <= level <= len(self.headings):
            raise ValueError(f"heading level must be between 1 and {len(self.headings)}")
        return self.headings[level - 1]

    @property
    def line_range(self) -> tuple[int, int]:
        return (self.start_line, self.end_line)


class JobId(BaseModel):
    model_config = ConfigDict(frozen=True)

    document: int
    case: int
    compiler: int

    def artifact_stem(self) -> str:
        return f"{self.document}-{self.case}-{self.compiler}"


class FailureReport(BaseModel):
    filename: str
    line: tuple[int, int]
    compiler: str
    info: str
    stage: Literal["spawn", "compile", "run", "timeout"]


class Passed(BaseModel):
    kind: Literal["passed"] = "passed"
    job: JobId
    case: TestCase
    compiler: str
    elapsed_ms: int

    def summary(self) -> str:
        return (
            f"Passed: {self.case.source_path} "
            f"({json.dumps(self.case.heading, ensure_ascii=False)} "
            f"[line: {self.case.start_line}-{self.case.end_line}], "
            f"compiler: {self.compiler}, time: {self.elapsed_ms} ms)"
        )


class Failed(BaseModel):
    kind: Literal["failed"] = "failed"
    job: JobId
    case: TestCase
    compiler: str
    elapsed_ms: int
    stage: Literal["spawn", "compile", "run", "timeout"]
    exit_code: int | None = None
    diagnostic: str = ""

    def report(self) -> FailureReport:
        return FailureReport(
            filename=self.case.source_path,
            line=self.case.line_range,
            compiler=self.compiler,
            info=self.diagnostic,
            stage=self.stage,
        )


Outcome = Annotated[Passed | Failed, Field(discriminator="kind")]
