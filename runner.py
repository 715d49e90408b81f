"""
Main orchestrator for mkdocs-smoke-test.

Scans every markdown document under a directory, fans each dogeared sample
out to every configured compiler, compiles and runs them concurrently, and
exits non-zero with a JSON failure report if any job failed.

Usage:
    mkdocs-smoke-test --directory docs --config config.toml
    mkdocs-smoke-test -d docs -c config.toml --jobs 8 --report failures.json
    python runner.py -d docs -c config.toml --parquet outcomes.parquet
"""

from __future__ import annotations

import argparse
import asyncio
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path

from models import Failed, FailureReport, JobId, Passed, Settings, TestCase
from report_format import render_report_json, write_outcomes_parquet, write_report_json
from utils.discovery import discover_documents
from utils.errors import SmokeTestError
from utils.helpers import env_int, tprint
from utils.jobs import run_job
from utils.reporting import print_outcome, print_summary
from utils.scanner import Scanner
from utils.settings import load_settings

__version__ = "0.3.0"

EXIT_OK = 0
EXIT_TEST_FAILURES = 1
EXIT_ERROR = 2

print = tprint


def default_job_concurrency() -> int:
    return env_int("SMOKE_JOB_CONCURRENCY", 0)  # 0 = unbounded


# ---------------------------------------------------------------------------
# Aggregate report
# ---------------------------------------------------------------------------


class AggregateReport:
    def __init__(self) -> None:
        self.failures: list[FailureReport] = []
        self.documents_with_failures: list[str] = []

    def add_document(self, source_path: str, failures: list[Failed]) -> None:
        if not failures:
            return
        self.documents_with_failures.append(source_path)
        self.failures.extend(f.report() for f in failures)

    @property
    def passed(self) -> bool:
        return not self.failures

    def to_json(self) -> str:
        return render_report_json(self.failures)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """Runs every (test case, compiler) job and folds failures per document.

    Documents are all scanned before the first job starts, so an unreadable
    file aborts the run without leaving processes behind. Every job of a
    document must finish before that document's failures reach the
    aggregate, and run() only returns once every document has finished.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        workspace: Path,
        concurrency: int = 0,
    ) -> None:
        self.settings = settings
        self.workspace = workspace
        self.scanner = Scanner(settings)
        self.semaphore = asyncio.Semaphore(concurrency) if concurrency > 0 else None
        self.report = AggregateReport()
        self._outcomes: dict[int, list[Passed | Failed]] = {}

    @property
    def outcomes(self) -> list[Passed | Failed]:
        """Every finished outcome, in document then scheduling order."""
        return [o for index in sorted(self._outcomes) for o in self._outcomes[index]]

    def scan_documents(self, documents: Sequence[Path]) -> list[tuple[str, list[TestCase]]]:
        scanned: list[tuple[str, list[TestCase]]] = []
        for path in documents:
            cases = self.scanner.scan_file(path)
            print(f"[scan] {path}: {len(cases)} test case(s)")
            scanned.append((str(path), cases))
        return scanned

    async def _run_one(self, case: TestCase, compiler: str, job: JobId) -> Passed | Failed:
        if self.semaphore is None:
            outcome = await run_job(
                case, compiler, self.settings, workspace=self.workspace, job=job,
            )
        else:
            async with self.semaphore:
                outcome = await run_job(
                    case, compiler, self.settings, workspace=self.workspace, job=job,
                )
        print_outcome(outcome)
        return outcome

    async def run_document(
        self, document: int, cases: list[TestCase],
    ) -> list[Passed | Failed]:
        return list(
            await asyncio.gather(
                *[
                    self._run_one(
                        case,
                        compiler,
                        JobId(document=document, case=case_index, compiler=compiler_index),
                    )
                    for case_index, case in enumerate(cases)
                    for compiler_index, compiler in enumerate(self.settings.compilers)
                ]
            )
        )

    async def _run_document_to_end(
        self, document: int, source_path: str, cases: list[TestCase],
    ) -> tuple[int, str, list[Failed]]:
        outcomes = await self.run_document(document, cases)
        self._outcomes[document] = outcomes
        return document, source_path, [o for o in outcomes if isinstance(o, Failed)]

    async def run(self, documents: Sequence[Path]) -> AggregateReport:
        scanned = self.scan_documents(documents)
        finished = await asyncio.gather(
            *[
                self._run_document_to_end(index, source_path, cases)
                for index, (source_path, cases) in enumerate(scanned)
                if cases
            ]
        )
        # Fold in document order, not completion order.
        for _, source_path, failures in sorted(finished, key=lambda item: item[0]):
            self.report.add_document(source_path, failures)
        return self.report


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def run_smoke_tests(
    *,
    directory: str | Path,
    settings: Settings,
    concurrency: int = 0,
    report_path: str | None = None,
    parquet_path: str | None = None,
    keep_workspace: bool = False,
) -> int:
    documents = discover_documents(directory)
    print(f"[scan] found {len(documents)} markdown document(s) under {directory}")

    workspace = Path(tempfile.mkdtemp(prefix="mkdocs-smoke-")).resolve()
    print(f"[workspace] {workspace}")
    orchestrator = Orchestrator(settings, workspace=workspace, concurrency=concurrency)
    try:
        report = await orchestrator.run(documents)
    finally:
        if keep_workspace:
            print(f"[workspace] kept {workspace}")
        else:
            shutil.rmtree(workspace, ignore_errors=True)

    if report_path:
        write_report_json(report.failures, report_path)
        print(f"[report] wrote {len(report.failures)} failure(s) to {report_path}")
    if parquet_path:
        write_outcomes_parquet(orchestrator.outcomes, parquet_path)
        print(f"[report] wrote {len(orchestrator.outcomes)} outcome(s) to {parquet_path}")

    print_summary(
        report.failures,
        total_jobs=len(orchestrator.outcomes),
        report_json=report.to_json(),
    )
    return EXIT_OK if report.passed else EXIT_TEST_FAILURES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mkdocs-smoke-test",
        description="Smoke test tool for MkDocs: compile and run dogeared code samples.",
    )
    parser.add_argument(
        "-d", "--directory", required=True, metavar="DIR",
        help="Path to the docs directory.",
    )
    parser.add_argument(
        "-c", "--config", required=True, metavar="CONFIG",
        help="Path to config.toml.",
    )
    parser.add_argument(
        "-j", "--jobs", type=int, default=default_job_concurrency(),
        help="Maximum concurrent jobs (default: 0, unbounded).",
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Per compile/run timeout in seconds (overrides the config).",
    )
    parser.add_argument(
        "--report", default=None,
        help="Write the JSON failure report here (the machine-readable output).",
    )
    parser.add_argument("--parquet", default=None, help="Write every job outcome as Parquet.")
    parser.add_argument("--keep-workspace", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be > 0")
    try:
        settings = load_settings(args.config)
        if args.timeout is not None:
            settings = settings.model_copy(update={"timeout_seconds": args.timeout})
        return asyncio.run(
            run_smoke_tests(
                directory=args.directory,
                settings=settings,
                concurrency=max(0, args.jobs),
                report_path=args.report,
                parquet_path=args.parquet,
                keep_workspace=args.keep_workspace,
            )
        )
    except SmokeTestError as e:
        print(f"[error] {e}")
        return EXIT_ERROR


def cli() -> None:
    from dotenv import load_dotenv

    load_dotenv()
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
