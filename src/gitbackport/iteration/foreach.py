"""Running a shell command on every commit of a range."""

from typing import List, Optional

from rich.console import Console

from gitbackport.errors import InvalidOptionError
from gitbackport.iteration.runner import RangeRunner, RunLog, check_interrupted, run_logged
from gitbackport.models import CommitOutcome, CommitRecord, ForeachConfig, StepResult
from gitbackport.repository import GitRepository


class ForeachRunner:
    """Evaluates a shell command with each commit of a range checked out.

    The command output is streamed to the console and appended to the log.
    A failing command aborts the run unless errors are ignored, in which
    case failures are neither fatal nor reported.
    """

    def __init__(self, repository: GitRepository, config: ForeachConfig, console: Console) -> None:
        """Initialize the runner.

        Raises:
            InvalidOptionError: If no command is configured
        """
        if not config.command.strip():
            raise InvalidOptionError("No command given (use --command or git config foreach.command)")
        self.repository = repository
        self.config = config
        self.console = console

    def run_command(self, commit: CommitRecord, log: RunLog) -> StepResult:
        returncode = run_logged(self.config.command, self.repository.working_dir, log, echo=self.console)
        if returncode == 0:
            return StepResult(success=True)
        check_interrupted(returncode)
        return StepResult(success=False, step="command", returncode=returncode)

    def run(self, commits: Optional[List[CommitRecord]] = None) -> List[CommitOutcome]:
        """Run the command across the range.

        Args:
            commits: Already resolved range, resolved by the runner when omitted
        """
        runner = RangeRunner(
            self.repository,
            self.config,
            self.console,
            stop_on_failure=not self.config.ignore_errors,
            report_failures=not self.config.ignore_errors,
        )
        return runner.run(self.run_command, commits)
