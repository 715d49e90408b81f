"""
Compile-run jobs.

run_job() pipes one TestCase body into one compiler, runs the produced
executable when compilation succeeds, and returns a Passed or Failed outcome.
Process-level problems (spawn errors, timeouts) are raised by run_command()
and folded into a Failed outcome here, so a job never raises for a bad
sample or a broken toolchain.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path

from models import Failed, JobId, Passed, Settings, TestCase
from utils.errors import CommandTimeout, SpawnError
from utils.helpers import decode_output, elapsed_ms


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str

    def unpack(self) -> tuple[int, str, str]:
        return self.exit_code, self.stdout, self.stderr


def kill_process_tree(proc: asyncio.subprocess.Process) -> None:
    """Kill the process and anything it forked into its session."""
    with contextlib.suppress(ProcessLookupError):
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()


async def run_command(
    argv: list[str],
    *,
    stdin_text: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
    except (OSError, ValueError) as e:
        # ValueError: argv with an embedded NUL byte
        raise SpawnError(argv[0], str(e)) from e

    payload = stdin_text.encode("utf-8") if stdin_text is not None else None
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(payload), timeout=timeout)
    except TimeoutError:
        kill_process_tree(proc)
        await proc.wait()
        raise CommandTimeout(argv[0], timeout or 0) from None
    except asyncio.CancelledError:
        kill_process_tree(proc)
        raise

    return CommandResult(
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=decode_output(stdout),
        stderr=decode_output(stderr),
    )


def artifact_path(workspace: Path, job: JobId, compiler: str) -> Path:
    return workspace / f"{job.artifact_stem()}-{Path(compiler).name}.out"


def compile_command(
    settings: Settings, compiler: str, artifact: Path,
) -> list[str]:
    return [
        compiler,
        *settings.compiler_options,
        "-o",
        str(artifact),
        settings.effective_language_flag,
        "-",
    ]


async def run_job(
    case: TestCase,
    compiler: str,
    settings: Settings,
    *,
    workspace: Path,
    job: JobId,
) -> Passed | Failed:
    started_mono = time.monotonic()
    artifact = artifact_path(workspace, job, compiler)

    def failed(stage: str, diagnostic: str, exit_code: int | None = None) -> Failed:
        return Failed(
            job=job,
            case=case,
            compiler=compiler,
            elapsed_ms=elapsed_ms(started_mono),
            stage=stage,
            exit_code=exit_code,
            diagnostic=diagnostic,
        )

    try:
        exit_code, _, stderr = (
            await run_command(
                compile_command(settings, compiler, artifact),
                stdin_text=case.body + "\n",
                timeout=settings.timeout_seconds,
            )
        ).unpack()
    except SpawnError as e:
        return failed("spawn", str(e))
    except CommandTimeout as e:
        return failed("timeout", str(e))
    if exit_code != 0:
        return failed("compile", stderr, exit_code)

    try:
        exit_code, _, stderr = (
            await run_command([str(artifact)], timeout=settings.timeout_seconds)
        ).unpack()
    except SpawnError as e:
        return failed("spawn", str(e))
    except CommandTimeout as e:
        return failed("timeout", str(e))
    if exit_code != 0:
        return failed("run", stderr, exit_code)

    return Passed(
        job=job,
        case=case,
        compiler=compiler,
        elapsed_ms=elapsed_ms(started_mono),
    )
