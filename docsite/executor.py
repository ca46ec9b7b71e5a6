"""Run batches of external commands serially or through a worker pool.

The :class:`CommandRunner` executes a flat batch of independent command
strings. With fewer than two workers it runs them in order and stops at the
first failure. With two or more workers it submits the whole batch to a
:class:`~concurrent.futures.ThreadPoolExecutor`, lets every job finish, and,
if any job failed, re-runs the complete batch serially from the start so the
failing command's output is reproducible instead of interleaved with its
siblings.

Each job's combined stdout/stderr is captured into a :class:`JobOutcome` and
written to the runner's output stream when the job finishes. Nothing here
terminates the process: callers inspect the returned :class:`BatchResult` or
call :meth:`BatchResult.raise_for_status`.

Example
-------
>>> from docsite.executor import CommandRunner
>>> result = CommandRunner(worker_count=4).run(["nim -v"])  # doctest: +SKIP
>>> result.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import shlex
import subprocess
import sys
import typing as typ
from concurrent.futures import ThreadPoolExecutor, as_completed

from .errors import JobFailure

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
_NOT_FOUND_STATUS = 127


@dc.dataclass(frozen=True, slots=True)
class JobOutcome:
    """Exit status and captured output of a single command."""

    command: str
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        """Return ``True`` when the command exited with status zero."""
        return self.returncode == 0


@dc.dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcomes of a batch in submission order.

    Attributes
    ----------
    outcomes : tuple[JobOutcome, ...]
        One entry per command that ran. Serial runs stop at the first failure,
        so later commands may be absent.
    retried : bool
        ``True`` when a concurrent run failed and these outcomes come from the
        serial re-run.
    """

    outcomes: tuple[JobOutcome, ...] = ()
    retried: bool = False

    @property
    def ok(self) -> bool:
        """Return ``True`` when every command that ran succeeded."""
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def failed(self) -> JobOutcome | None:
        """Return the first failing outcome, if any."""
        return next((outcome for outcome in self.outcomes if not outcome.ok), None)

    def raise_for_status(self) -> None:
        """Raise :class:`~docsite.errors.JobFailure` for the first failure."""
        failed = self.failed
        if failed is not None:
            raise JobFailure(failed.command, failed.returncode, failed.output)


class CommandRunner:
    """Execute command batches with a bounded number of concurrent workers."""

    def __init__(self, worker_count: int = 1, *, stream: typ.TextIO | None = None) -> None:
        """Initialize the runner.

        Parameters
        ----------
        worker_count : int, optional
            Maximum number of concurrent jobs. Values below two select the
            fail-fast serial strategy.
        stream : TextIO, optional
            Destination for captured job output; defaults to ``sys.stdout``
            at the time output is written.
        """
        self.worker_count = worker_count
        self._stream = stream

    @property
    def stream(self) -> typ.TextIO:
        """Return the stream job output is copied to."""
        return self._stream or sys.stdout

    def run(self, commands: cabc.Sequence[str]) -> BatchResult:
        """Run ``commands`` using the strategy selected by ``worker_count``."""
        if self.worker_count < 2:
            return self.run_serial(commands)
        return self.run_parallel(commands)

    def run_serial(self, commands: cabc.Sequence[str]) -> BatchResult:
        """Run ``commands`` in order, stopping at the first non-zero exit."""
        outcomes: list[JobOutcome] = []
        for command in commands:
            outcome = self.execute(command)
            self._emit(outcome)
            outcomes.append(outcome)
            if not outcome.ok:
                break
        return BatchResult(tuple(outcomes))

    def run_parallel(self, commands: cabc.Sequence[str]) -> BatchResult:
        """Run ``commands`` concurrently, re-running serially on any failure.

        Sibling jobs are never cancelled; the batch is inspected only after
        every worker has finished.
        """
        if not commands:
            return BatchResult()
        outcomes: list[JobOutcome | None] = [None] * len(commands)
        with ThreadPoolExecutor(max_workers=self.worker_count) as pool:
            futures = {
                pool.submit(self.execute, command): index
                for index, command in enumerate(commands)
            }
            for future in as_completed(futures):
                outcome = future.result()
                self._emit(outcome)
                outcomes[futures[future]] = outcome

        result = BatchResult(tuple(outcome for outcome in outcomes if outcome))
        if result.ok:
            return result
        logger.warning("external program failed, retrying serial work queue for logs!")
        return dc.replace(self.run_serial(commands), retried=True)

    def execute(self, command: str) -> JobOutcome:
        """Run a single command and capture its combined output."""
        logger.info("%s", command)
        try:
            completed = subprocess.run(  # noqa: S603
                shlex.split(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError as exc:
            return JobOutcome(command, _NOT_FOUND_STATUS, f"{exc}\n")
        return JobOutcome(command, completed.returncode, completed.stdout or "")

    def _emit(self, outcome: JobOutcome) -> None:
        if outcome.output:
            self.stream.write(outcome.output)
            if not outcome.output.endswith("\n"):
                self.stream.write("\n")
            self.stream.flush()


def run_commands(commands: cabc.Sequence[str], worker_count: int) -> BatchResult:
    """Run ``commands`` with a throwaway :class:`CommandRunner`."""
    return CommandRunner(worker_count).run(commands)


__all__ = ["BatchResult", "CommandRunner", "JobOutcome", "run_commands"]
