"""Report formats: the JSON failure report and a Parquet table of all outcomes."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from models import Failed, FailureReport, Passed

OUTCOME_SCHEMA = pa.schema([
    ("document", pa.int32()),
    ("case", pa.int32()),
    ("compiler_index", pa.int32()),
    ("source_path", pa.string()),
    ("heading", pa.string()),
    ("start_line", pa.int32()),
    ("end_line", pa.int32()),
    ("compiler", pa.string()),
    ("status", pa.string()),
    ("stage", pa.string()),
    ("exit_code", pa.int32()),
    ("elapsed_ms", pa.int64()),
    ("diagnostic", pa.string()),
])


def render_report_json(failures: list[FailureReport]) -> str:
    return json.dumps(
        [failure.model_dump(mode="json") for failure in failures],
        indent=2,
        ensure_ascii=False,
    )


def write_report_json(failures: list[FailureReport], dest: str | Path) -> None:
    Path(dest).write_text(render_report_json(failures) + "\n", encoding="utf-8")


def outcome_to_row(outcome: Passed | Failed) -> dict[str, Any]:
    case = outcome.case
    row: dict[str, Any] = {
        "document": outcome.job.document,
        "case": outcome.job.case,
        "compiler_index": outcome.job.compiler,
        "source_path": case.source_path,
        "heading": json.dumps(case.heading, ensure_ascii=False),
        "start_line": case.start_line,
        "end_line": case.end_line,
        "compiler": outcome.compiler,
        "status": outcome.kind,
        "stage": None,
        "exit_code": 0,
        "elapsed_ms": outcome.elapsed_ms,
        "diagnostic": None,
    }
    if isinstance(outcome, Failed):
        row["stage"] = outcome.stage
        row["exit_code"] = outcome.exit_code
        row["diagnostic"] = outcome.diagnostic
    return row


def write_outcomes_parquet(
    outcomes: list[Passed | Failed], dest: str | Path | io.BytesIO,
) -> None:
    table = pa.Table.from_pylist(
        [outcome_to_row(o) for o in outcomes], schema=OUTCOME_SCHEMA,
    )
    pq.write_table(table, str(dest) if isinstance(dest, Path) else dest)


def read_outcomes_parquet(source: str | Path | io.BytesIO) -> list[dict[str, Any]]:
    table = pq.read_table(
        str(source) if isinstance(source, Path) else source, schema=OUTCOME_SCHEMA,
    )
    return table.to_pylist()
