"""Opening queued upstream/downstream pairs in an interactive diff tool."""

import os
import re
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Tuple

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from gitbackport.errors import InvalidOptionError
from gitbackport.models import BackportEntry
from gitbackport.repository import GitRepository

logger = structlog.get_logger(__name__)

# Viewers that accept one --label per compared file
LABELLING_VIEWERS = {"meld"}


def _slug(text: str, limit: int = 40) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "-", text).strip("-")[:limit] or "patch"


class DiffViewer:
    """Launches ``diff_prog`` on the upstream and downstream versions of a patch."""

    def __init__(self, repository: GitRepository, diff_prog: str) -> None:
        self.repository = repository
        self.diff_prog = diff_prog

    def labels(self, entry: BackportEntry) -> Tuple[str, str]:
        """Labels of the upstream and downstream sides of an entry."""
        upstream = entry.match.upstream
        downstream = entry.match.downstream
        return (
            f"#{entry.index} upstream {upstream.short_hash} {upstream.subject}",
            f"#{entry.index} downstream {downstream.short_hash} {downstream.subject}",
        )

    def command(self, entry: BackportEntry, upstream_file: str, downstream_file: str) -> List[str]:
        """Argument vector launching the viewer on two files."""
        argv = shlex.split(self.diff_prog)
        if os.path.basename(argv[0]) in LABELLING_VIEWERS:
            upstream_label, downstream_label = self.labels(entry)
            argv += [f"--label={upstream_label}", f"--label={downstream_label}"]
        return argv + [upstream_file, downstream_file]

    def replay_command(self, entry: BackportEntry) -> str:
        """Shell command (bash) that reopens this comparison later."""
        upstream = entry.match.upstream
        downstream = entry.match.downstream
        argv = shlex.split(self.diff_prog)
        if os.path.basename(argv[0]) in LABELLING_VIEWERS:
            argv += [f"--label={label}" for label in self.labels(entry)]
        viewer = " ".join(shlex.quote(arg) for arg in argv)
        return f"{viewer} <(git show {upstream.hash}) <(git show {downstream.hash})"

    def open(self, entry: BackportEntry) -> int:
        """Show an entry in the viewer and wait for it to exit.

        Both sides are written to temporary files named after the commits,
        so viewers without label support still identify each side.

        Returns:
            Exit status of the viewer
        """
        upstream = entry.match.upstream
        downstream = entry.match.downstream
        with tempfile.TemporaryDirectory(prefix="backport-diff-") as tmpdir:
            upstream_file = Path(tmpdir) / (
                f"{entry.index:03d}-upstream-{upstream.short_hash}-{_slug(upstream.subject)}.patch"
            )
            downstream_file = Path(tmpdir) / (
                f"{entry.index:03d}-downstream-{downstream.short_hash}-{_slug(downstream.subject)}.patch"
            )
            upstream_file.write_text(self.repository.show(upstream.hash) + "\n")
            downstream_file.write_text(self.repository.show(downstream.hash) + "\n")

            argv = self.command(entry, str(upstream_file), str(downstream_file))
            logger.debug("launching_viewer", argv=argv)
            try:
                return subprocess.run(argv, cwd=self.repository.working_dir).returncode
            except FileNotFoundError as e:
                raise InvalidOptionError(f"Diff viewer not found: {argv[0]}") from e


class ReviewSession:
    """Walks the user through the queued comparisons of a run."""

    def __init__(
        self,
        viewer: DiffViewer,
        console: Console,
        pause: bool = True,
        confirm: Callable[..., bool] = typer.confirm,
        prompt: Callable[..., str] = typer.prompt,
    ) -> None:
        self.viewer = viewer
        self.console = console
        self.pause = pause
        self.confirm = confirm
        self.prompt = prompt

    def review(self, queued: List[BackportEntry]) -> int:
        """Offer to view every queued entry, then print the replay commands.

        Returns:
            Number of comparisons opened in the viewer
        """
        if not queued:
            return 0

        opened = 0
        self.console.print()
        if self.confirm(f"Do you want to view the diffs using {self.viewer.diff_prog}?", default=False):
            for entry in queued:
                if self.pause:
                    answer = self.prompt(
                        f"Press [Enter] to view diff of {entry.index:03d}/{entry.total:03d} (q to stop)",
                        default="",
                        show_default=False,
                    )
                    if answer.strip().lower() == "q":
                        break
                self.viewer.open(entry)
                opened += 1

        self.print_replay_commands(queued)
        return opened

    def print_replay_commands(self, queued: List[BackportEntry]) -> None:
        self.console.print("\n[bold]To view the diffs again later, run (in bash):[/bold]")
        for entry in queued:
            self.console.print(
                f"{entry.index:03d}/{entry.total:03d}: {escape(self.viewer.replay_command(entry))}",
                highlight=False,
                soft_wrap=True,
            )
