"""Building every commit of a range."""

import os
from pathlib import Path
from typing import List, Optional, Tuple

import structlog
from rich.console import Console

from gitbackport.iteration.runner import RangeRunner, RunLog, check_interrupted, run_logged
from gitbackport.models import CommitOutcome, CommitRecord, CompileCheckConfig, StepResult
from gitbackport.repository import GitRepository

logger = structlog.get_logger(__name__)


def join_command(program: str, options: str) -> str:
    return f"{program} {options}".strip()


class CompileCheck:
    """Checks that each commit of a range configures and builds."""

    def __init__(self, repository: GitRepository, config: CompileCheckConfig, console: Console) -> None:
        self.repository = repository
        self.config = config
        self.console = console

    def steps(self) -> List[Tuple[str, str]]:
        """Name and shell command of the steps whose failure fails a commit."""
        steps = []
        if not self.config.skip_configure:
            steps.append(("configure", join_command(self.config.configure, self.config.config_opts)))
        steps.append(("build", join_command(self.config.make, self.config.make_opts)))
        return steps

    def build_commit(self, commit: CommitRecord, log: RunLog) -> StepResult:
        """Clean, configure and build the checked-out commit."""
        workdir = self.repository.working_dir

        if self.config.clean_tree:
            log.write("$ git reset --hard && git clean -fdx\n")
            self.repository.hard_reset()
            self.repository.clean_untracked(keep=self._protected_paths())

        # A missing previous build makes "clean" fail, which is fine
        check_interrupted(run_logged(join_command(self.config.make, "clean"), workdir, log))

        for step, command in self.steps():
            returncode = run_logged(command, workdir, log)
            if returncode != 0:
                check_interrupted(returncode)
                logger.debug("build_step_failed", commit=commit.short_hash, step=step, status=returncode)
                return StepResult(success=False, step=step, returncode=returncode)

        return StepResult(success=True)

    def run(self, commits: Optional[List[CommitRecord]] = None) -> List[CommitOutcome]:
        runner = RangeRunner(
            self.repository,
            self.config,
            self.console,
            stop_on_failure=not self.config.keep_going,
        )
        return runner.run(self.build_commit, commits)

    def _protected_paths(self) -> List[str]:
        """Working-tree relative path of the log file, so ``git clean`` keeps it."""
        relative = self._relative_to_worktree(self.config.log_path)
        return [relative] if relative else []

    def _relative_to_worktree(self, path: Path) -> Optional[str]:
        workdir = os.path.realpath(self.repository.working_dir)
        target = os.path.realpath(path)
        if os.path.commonpath([workdir, target]) != workdir:
            return None
        return "/" + os.path.relpath(target, workdir)
