"""Shared fixtures: throwaway Git repositories built with GitPython."""

import tempfile
from pathlib import Path

import git
import pytest
import structlog

BASE_LINES = [f"line{n:02d}" for n in range(1, 21)]


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configured by a CLI run, whose stderr is closed afterwards."""
    yield
    structlog.reset_defaults()


def write_lines(path: Path, lines) -> None:
    path.write_text("\n".join(lines) + "\n")


def commit_lines(repo: git.Repo, lines, message: str, name: str = "file.txt") -> git.Commit:
    """Replace ``name`` with ``lines`` and commit it."""
    write_lines(Path(repo.working_tree_dir) / name, lines)
    repo.index.add([name])
    return repo.index.commit(message)


def replaced(lines, index: int, value: str):
    """Copy of ``lines`` with the 1-based line ``index`` replaced."""
    result = list(lines)
    result[index - 1] = value
    return result


def init_repo(repo_path: Path) -> git.Repo:
    repo = git.Repo.init(repo_path)

    # Configure git
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()
    return repo


@pytest.fixture
def linear_repo():
    """Repository with four commits on a single branch."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir) / "repo"
        repo_path.mkdir()
        repo = init_repo(repo_path)

        lines = list(BASE_LINES)
        commit_lines(repo, lines, "Initial commit")
        for n in (1, 2, 3):
            lines = replaced(lines, n, f"line{n:02d} changed")
            commit_lines(repo, lines, f"Change line {n}")

        yield repo


@pytest.fixture
def backport_repo():
    """Repository with an ``upstream`` branch and a ``downstream`` backport branch.

    Downstream, on top of ``base``:
        1. "local hack"        downstream-only
        2. "fix X"             identical to upstream
        3. "add feature Y"     functionally different
        4. "tweak Z"           same +/- lines, different context
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir) / "repo"
        repo_path.mkdir()
        repo = init_repo(repo_path)

        base = commit_lines(repo, BASE_LINES, "Initial commit")
        repo.create_tag("base")

        repo.git.checkout("-b", "upstream")
        lines = replaced(BASE_LINES, 3, "line03 fixed")
        commit_lines(repo, lines, "fix X")
        lines = lines + ["feature y"]
        commit_lines(repo, lines, "add feature Y")
        lines = replaced(lines, 10, "line10 tweaked")
        commit_lines(repo, lines, "tweak Z")

        repo.git.checkout("-b", "downstream", base.hexsha)
        lines = replaced(BASE_LINES, 9, "line09 local")
        commit_lines(repo, lines, "local hack")
        lines = replaced(lines, 3, "line03 fixed")
        commit_lines(repo, lines, "fix X")
        lines = lines + ["feature y improved"]
        commit_lines(repo, lines, "add feature Y")
        lines = replaced(lines, 10, "line10 tweaked")
        commit_lines(repo, lines, "tweak Z")

        yield repo


@pytest.fixture
def duplicate_subject_repo():
    """Repository whose ``upstream`` branch has two commits titled "fix X".

    Yields the repository and the SHAs of the older and newer one.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir) / "repo"
        repo_path.mkdir()
        repo = init_repo(repo_path)

        commit_lines(repo, BASE_LINES, "Initial commit")
        repo.git.checkout("-b", "upstream")
        lines = replaced(BASE_LINES, 1, "first")
        older = commit_lines(repo, lines, "fix X")
        lines = replaced(lines, 2, "second")
        newer = commit_lines(repo, lines, "fix X")

        yield repo, older.hexsha, newer.hexsha
