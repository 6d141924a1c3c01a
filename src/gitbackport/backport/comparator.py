"""Comparing a range of backported commits with their upstream originals."""

from typing import Any, Dict, List, Optional

import structlog
from rich.console import Console
from rich.text import Text

from gitbackport.backport.matcher import UpstreamMatcher
from gitbackport.backport.patch_diff import compare_patches
from gitbackport.models import (
    BackportDiffConfig,
    BackportEntry,
    Classification,
    CommitRecord,
    IterationOrder,
    PatchComparison,
)
from gitbackport.repository import GitRepository

logger = structlog.get_logger(__name__)

IDENTICAL_BADGE = "----"
DOWNSTREAM_BADGE = "down"

STYLES = {
    Classification.IDENTICAL: "green",
    Classification.CONTEXTUALLY_DIFFERENT: "yellow",
    Classification.FUNCTIONALLY_DIFFERENT: "bold red",
    Classification.DOWNSTREAM_ONLY: "blue",
}

KEY_LINES = [
    ("[----]", " : patches are identical", STYLES[Classification.IDENTICAL]),
    ("[####]", " : number of functional differences between upstream/downstream patch",
     STYLES[Classification.FUNCTIONALLY_DIFFERENT]),
    ("[down]", " : patch is downstream-only", STYLES[Classification.DOWNSTREAM_ONLY]),
]


def should_queue(classification: Classification, sensitivity: int) -> bool:
    """Whether a comparison is offered to the diff viewer at ``sensitivity``."""
    if classification == Classification.DOWNSTREAM_ONLY:
        return False
    if sensitivity >= 2:
        return True
    if classification == Classification.FUNCTIONALLY_DIFFERENT:
        return True
    return sensitivity >= 1 and classification == Classification.CONTEXTUALLY_DIFFERENT


def format_badge(comparison: Optional[PatchComparison]) -> str:
    if comparison is None:
        return DOWNSTREAM_BADGE
    if comparison.functional == 0:
        return IDENTICAL_BADGE
    return f"{comparison.functional:04d}"


def format_flags(comparison: PatchComparison) -> str:
    return ("F" if comparison.functional else "-") + ("C" if comparison.contextual else "-")


class BackportComparator:
    """Classifies each commit of a range against the upstream reference."""

    def __init__(
        self,
        repository: GitRepository,
        config: BackportDiffConfig,
        console: Console,
        matcher: Optional[UpstreamMatcher] = None,
    ) -> None:
        """Initialize the comparator.

        Args:
            repository: Repository holding both the range and the upstream history
            config: Range, upstream, sensitivity and display settings
            console: Destination of the report
            matcher: Pre-built matcher; by default one is built for ``config.upstream``

        Raises:
            UpstreamNotFoundError: If the upstream reference does not resolve
        """
        self.repository = repository
        self.config = config
        self.console = console
        self.matcher = matcher or UpstreamMatcher(repository, config.upstream, config.prefer)

    def resolve(self) -> List[CommitRecord]:
        """Downstream commits of the configured range, oldest first."""
        return self.repository.resolve_range(self.config.commit_range, IterationOrder.OLDEST_FIRST)

    def compare(self, commits: Optional[List[CommitRecord]] = None) -> List[BackportEntry]:
        """Classify every commit of the range, oldest first, printing one line each.

        Args:
            commits: Already resolved range, resolved here when omitted

        Returns:
            One entry per commit, in range order
        """
        if commits is None:
            commits = self.resolve()
        total = len(commits)
        logger.info("backport_compare_started", range=self.config.commit_range, upstream=self.config.upstream,
                    commits=total)

        entries = []
        for index, commit in enumerate(commits, start=1):
            match = self.matcher.find(commit)
            comparison = None
            if match.upstream is not None:
                comparison = compare_patches(
                    self.repository.patch_text(match.upstream.hash),
                    self.repository.patch_text(commit.hash),
                )

            entry = BackportEntry(index=index, total=total, match=match, comparison=comparison)
            entry.queued = should_queue(entry.classification, self.config.sensitivity)
            entries.append(entry)
            self.console.print(self.format_entry(entry))

        return entries

    def print_key(self) -> None:
        self.console.print("Key:")
        for badge, meaning, style in KEY_LINES:
            self.console.print(Text(badge, style=self._style(style)) + Text(meaning))
        self.console.print(Text("The flags [FC] indicate (F)unctional and (C)ontextual differences, respectively"))
        self.console.print()

    def format_entry(self, entry: BackportEntry) -> Text:
        """Render ``NNN/TTT:[badge] [FC] 'subject'`` for an entry."""
        style = self._style(STYLES[entry.classification])
        line = Text(f"{entry.index:03d}/{entry.total:03d}:")
        line.append(f"[{format_badge(entry.comparison)}]", style=style)
        if entry.comparison is not None:
            line.append(f" [{format_flags(entry.comparison)}]", style=style)
        line.append(f" '{entry.match.downstream.subject}'")
        return line

    def _style(self, style: str) -> str:
        return style if self.config.color else ""


def build_report(entries: List[BackportEntry]) -> List[Dict[str, Any]]:
    """JSON-serializable view of a comparison run."""
    report = []
    for entry in entries:
        data = entry.model_dump(mode="json")
        data["classification"] = entry.classification.value
        report.append(data)
    return report
