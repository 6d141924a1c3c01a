"""Checking out each commit of a range and running an action on it."""

import signal
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, TextIO

import structlog
from rich.console import Console
from rich.markup import escape

from gitbackport.errors import RunInterrupted, StepFailedError
from gitbackport.models import CommitOutcome, CommitRecord, RunnerConfig, StepResult
from gitbackport.repository import CheckoutGuard, GitRepository, interrupt_signals

logger = structlog.get_logger(__name__)

TERMINATION_SIGNALS = frozenset(
    int(getattr(signal, name)) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


def interrupted_by_signal(returncode: int) -> bool:
    """Whether an exit status means the process was stopped by the user.

    Covers both a direct signal death (negative status) and the 128+N
    status a shell reports for a child killed by signal N.
    """
    if returncode < 0:
        return -returncode in TERMINATION_SIGNALS
    return returncode > 128 and returncode - 128 in TERMINATION_SIGNALS


class RunLog:
    """Append-only log file shared by every commit of a run."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._file: Optional[TextIO] = None

    def __enter__(self) -> "RunLog":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._file is not None:
            self._file.close()
            self._file = None
        return False

    def header(self, commit: CommitRecord) -> None:
        stamp = datetime.now().isoformat(timespec="seconds")
        self.write(f"\n===== {stamp} {commit.hash} {commit.subject}\n")

    def write(self, text: str) -> None:
        if self._file is None:
            raise RuntimeError("RunLog used outside of its context")
        self._file.write(text)
        self._file.flush()


def run_logged(command: str, cwd: Path, log: RunLog, echo: Optional[Console] = None) -> int:
    """Run a shell command, appending its combined output to the log.

    Args:
        command: Shell expression
        cwd: Working directory
        log: Destination of stdout and stderr
        echo: Console that also receives the output live, if given

    Returns:
        Exit status of the command
    """
    log.write(f"$ {command}\n")
    logger.debug("running_command", command=command, cwd=str(cwd))

    proc = subprocess.Popen(
        command,
        shell=True,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
    )
    try:
        for line in proc.stdout:
            log.write(line)
            if echo is not None:
                echo.out(line.rstrip("\n"), highlight=False)
        returncode = proc.wait()
    except BaseException:
        proc.kill()
        proc.wait()
        raise
    finally:
        proc.stdout.close()

    log.write(f"[exit status {returncode}]\n")
    return returncode


CommitAction = Callable[[CommitRecord, RunLog], StepResult]


class RangeRunner:
    """Visits every commit of a range with the working tree checked out on it.

    The originally checked-out ref is restored when the run ends, including
    on failure and interruption.
    """

    def __init__(
        self,
        repository: GitRepository,
        config: RunnerConfig,
        console: Console,
        stop_on_failure: bool = True,
        report_failures: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            repository: Repository whose working tree is used
            config: Range, order and log location
            console: Destination of progress output
            stop_on_failure: Abort the run at the first failing commit
            report_failures: Print the stat summary of failing commits
        """
        self.repository = repository
        self.config = config
        self.console = console
        self.stop_on_failure = stop_on_failure
        self.report_failures = report_failures

    def resolve(self) -> List[CommitRecord]:
        """Commits of the configured range, in iteration order."""
        return self.repository.resolve_range(self.config.commit_range, self.config.order)

    def run(self, action: CommitAction, commits: Optional[List[CommitRecord]] = None) -> List[CommitOutcome]:
        """Run ``action`` on each commit of the configured range.

        Args:
            action: Called with each checked-out commit and the run log
            commits: Already resolved range, resolved here when omitted

        Returns:
            One outcome per processed commit, in iteration order

        Raises:
            StepFailedError: If a commit fails and the run stops on failure
            CheckoutError: If a commit cannot be checked out
            RunInterrupted: If the user cancelled the run
        """
        if commits is None:
            commits = self.resolve()
        total = len(commits)
        if not commits:
            self.console.print(f"[yellow]No commits in range:[/yellow] {escape(self.config.commit_range)}")
            return []

        logger.info("range_run_started", range=self.config.commit_range, commits=total)
        outcomes: List[CommitOutcome] = []

        with interrupt_signals(), CheckoutGuard(self.repository), RunLog(self.config.log_path) as log:
            for index, commit in enumerate(commits, start=1):
                self.repository.checkout(commit.hash)
                self.console.print(
                    f"[bold]{index:03d}/{total:03d}[/bold] "
                    f"[cyan]{commit.short_hash}[/cyan] {escape(commit.subject)}"
                )
                log.header(commit)

                result = action(commit, log)
                outcomes.append(CommitOutcome(commit=commit, result=result))
                if result.success:
                    continue

                logger.info("commit_failed", commit=commit.short_hash, step=result.step, status=result.returncode)
                if self.report_failures:
                    self.console.print(
                        f"[bold red]✗[/bold red] {result.step} failed on {commit.short_hash} "
                        f"(see {escape(str(self.config.log_path))})"
                    )
                    self.console.print(
                        self.repository.stat_summary(commit.hash), markup=False, highlight=False
                    )
                if self.stop_on_failure:
                    raise StepFailedError(commit.short_hash, result.step or "action", result.returncode)

        logger.info("range_run_finished", processed=len(outcomes))
        return outcomes


def check_interrupted(returncode: int) -> None:
    """Raise ``RunInterrupted`` if a step ended because the user stopped it."""
    if interrupted_by_signal(returncode):
        signum = -returncode if returncode < 0 else returncode - 128
        raise RunInterrupted(signum)
