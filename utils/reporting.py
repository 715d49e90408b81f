"""Console reporting: per-job lines as they complete and the final verdict."""

from __future__ import annotations

import builtins

from models import Failed, FailureReport, Passed
from utils.helpers import tprint, truncate_text

print = tprint

CONSOLE_DIAGNOSTIC_LIMIT = 2000


def print_outcome(outcome: Passed | Failed) -> None:
    if isinstance(outcome, Passed):
        print(f"[passed] {outcome.summary()}")
        return
    shown = outcome.report().model_copy(
        update={"info": truncate_text(outcome.diagnostic, limit=CONSOLE_DIAGNOSTIC_LIMIT)}
    )
    print(f"[failed] {shown.model_dump_json()}")


def print_summary(failures: list[FailureReport], *, total_jobs: int, report_json: str) -> None:
    if not failures:
        print(f"[summary] {total_jobs} job(s), all passed")
        builtins.print("All Tests Passed", flush=True)
        return
    print(f"[summary] {len(failures)} of {total_jobs} job(s) failed")
    builtins.print(report_json, flush=True)
