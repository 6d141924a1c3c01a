"""Git repository access."""

from pathlib import Path
from typing import Iterable, List, Optional

import git
import structlog
from git import Repo

from gitbackport.errors import CheckoutError, InvalidOptionError, RepositoryError
from gitbackport.models import CommitRecord, IterationOrder

logger = structlog.get_logger(__name__)

# %x00 separates hash and subject so subjects may contain any printable text
LOG_FORMAT = "--format=%H%x00%s"


class GitRepository:
    """Thin wrapper around a GitPython ``Repo`` exposing what the tools need."""

    def __init__(self, repo_path: Path) -> None:
        """Open the repository containing ``repo_path``.

        Args:
            repo_path: Path inside a Git working tree

        Raises:
            RepositoryError: If the path does not exist or is not a working tree
        """
        repo_path = Path(repo_path)
        if not repo_path.exists():
            raise RepositoryError(f"Repository path does not exist: {repo_path}")

        try:
            self.repo = Repo(repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise RepositoryError(f"Invalid Git repository: {repo_path}") from e

        if self.repo.bare or self.repo.working_tree_dir is None:
            raise RepositoryError(f"Repository has no working tree: {repo_path}")

    @property
    def working_dir(self) -> Path:
        return Path(self.repo.working_tree_dir)

    def resolve_range(
        self,
        commit_range: str,
        order: IterationOrder = IterationOrder.OLDEST_FIRST,
    ) -> List[CommitRecord]:
        """Resolve a revision range into its ordered list of commits.

        Range semantics are git's own; the expression may hold several
        whitespace-separated revisions (``A ^B``).

        Args:
            commit_range: Revision range expression (e.g. ``v1.0..HEAD``)
            order: Iteration order of the returned list

        Returns:
            List of CommitRecord objects

        Raises:
            InvalidOptionError: If git cannot resolve the range
        """
        revisions = commit_range.split()
        if not revisions:
            raise InvalidOptionError("Empty revision range")

        args = [LOG_FORMAT]
        if order == IterationOrder.OLDEST_FIRST:
            args.append("--reverse")

        try:
            records = self._log_records(*args, *revisions, "--")
        except git.exc.GitCommandError as e:
            raise InvalidOptionError(f"Invalid revision range: {commit_range}") from e

        logger.debug("range_resolved", range=commit_range, order=order.value, commits=len(records))
        return records

    def resolve_commit(self, ref: str) -> Optional[CommitRecord]:
        """Return the commit ``ref`` points to, or None if it does not resolve."""
        try:
            sha = self.repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}")
        except git.exc.GitCommandError:
            return None
        records = self._log_records("-1", LOG_FORMAT, sha, "--")
        return records[0] if records else None

    def find_by_subject(self, ref: str, subject: str) -> List[CommitRecord]:
        """Find the commits reachable from ``ref`` whose subject equals ``subject``.

        Git narrows the search with a fixed-string grep over the message,
        the exact comparison happens here.

        Returns:
            Matching commits, oldest first
        """
        candidates = self._log_records(
            LOG_FORMAT,
            "--reverse",
            "--fixed-strings",
            f"--grep={subject}",
            ref,
            "--",
        )
        return [record for record in candidates if record.subject == subject]

    def patch_text(self, commit_hash: str) -> str:
        """Unified diff of a commit against its parent, without the commit header."""
        return self.repo.git.show("--format=", "--no-color", "--no-ext-diff", commit_hash)

    def show(self, commit_hash: str) -> str:
        """Full ``git show`` output of a commit (header, message and patch)."""
        return self.repo.git.show("--no-color", "--no-ext-diff", commit_hash)

    def stat_summary(self, commit_hash: str) -> str:
        """One-line description of a commit followed by its diffstat."""
        return self.repo.git.show("--stat", "--format=%h %s", "--no-color", commit_hash)

    def current_ref(self) -> str:
        """Name of the checked-out branch, or the commit SHA when HEAD is detached."""
        if self.repo.head.is_detached:
            return self.repo.head.commit.hexsha
        return self.repo.active_branch.name

    def checkout(self, ref: str) -> None:
        """Check out ``ref`` into the working tree.

        Raises:
            CheckoutError: If git refuses the checkout
        """
        try:
            self.repo.git.checkout("--quiet", ref)
        except git.exc.GitCommandError as e:
            raise CheckoutError(ref, str(e.stderr or "")) from e
        logger.debug("checked_out", ref=ref)

    def hard_reset(self) -> None:
        """Discard every change to tracked files."""
        self.repo.git.reset("--hard", "--quiet")

    def clean_untracked(self, keep: Iterable[str] = ()) -> None:
        """Remove untracked and ignored files, except the paths in ``keep``."""
        args = ["-f", "-d", "-x", "-q"]
        args.extend(f"--exclude={path}" for path in keep)
        self.repo.git.clean(*args)

    def _log_records(self, *args: str) -> List[CommitRecord]:
        output = self.repo.git.log(*args)
        records = []
        for line in output.splitlines():
            if not line:
                continue
            sha, _, subject = line.partition("\x00")
            records.append(CommitRecord(hash=sha, short_hash=sha[:7], subject=subject))
        return records
