"""Pairing downstream commits with upstream commits by subject."""

from typing import Dict, Optional

import structlog

from gitbackport.errors import UpstreamNotFoundError
from gitbackport.models import CommitRecord, MatchPreference, MatchResult
from gitbackport.repository import GitRepository

logger = structlog.get_logger(__name__)


class UpstreamMatcher:
    """Finds the upstream counterpart of a downstream commit.

    A commit matches when its subject is exactly the downstream subject.
    Candidates are scanned oldest first and the last one found wins, so the
    newest upstream commit is used unless ``prefer`` is OLDEST. Subjects are
    not unique, so a match is a heuristic and may pair unrelated commits.
    """

    def __init__(
        self,
        repository: GitRepository,
        upstream: str,
        prefer: MatchPreference = MatchPreference.NEWEST,
    ) -> None:
        """Initialize the matcher.

        Raises:
            UpstreamNotFoundError: If ``upstream`` does not resolve to a commit
        """
        self.repository = repository
        self.upstream = upstream
        self.prefer = prefer
        self.upstream_head = repository.resolve_commit(upstream)
        if self.upstream_head is None:
            raise UpstreamNotFoundError(upstream)
        self._cache: Dict[str, Optional[CommitRecord]] = {}

    def find(self, commit: CommitRecord) -> MatchResult:
        if commit.subject not in self._cache:
            candidates = self.repository.find_by_subject(self.upstream, commit.subject)
            if self.prefer == MatchPreference.OLDEST:
                candidates.reverse()

            found = None
            for candidate in candidates:
                found = candidate
            self._cache[commit.subject] = found

            logger.debug(
                "upstream_match",
                commit=commit.short_hash,
                candidates=len(candidates),
                upstream=found.short_hash if found else None,
            )

        return MatchResult(downstream=commit, upstream=self._cache[commit.subject])
