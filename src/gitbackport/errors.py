"""Exception hierarchy shared by all tools.

Every error carries the process exit code the CLI should use for it.
"""


class BackportToolError(Exception):
    """Base error for the backport tools."""

    exit_code = 1


class RepositoryError(BackportToolError):
    """The working directory is not usable as a Git repository."""


class InvalidOptionError(BackportToolError):
    """A command-line flag or persisted setting has an invalid value."""


class UpstreamNotFoundError(BackportToolError):
    """The upstream reference does not resolve to a commit."""

    exit_code = 2

    def __init__(self, upstream: str) -> None:
        super().__init__(f"Upstream reference does not resolve: {upstream}")
        self.upstream = upstream


class CheckoutError(BackportToolError):
    """Checking out a commit of the range failed."""

    def __init__(self, commit: str, stderr: str = "") -> None:
        message = f"Could not check out {commit}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.commit = commit


class StepFailedError(BackportToolError):
    """A per-commit step (configure, build, user command) failed."""

    def __init__(self, commit: str, step: str, returncode: int) -> None:
        super().__init__(f"{step} failed on {commit} (exit status {returncode})")
        self.commit = commit
        self.step = step
        self.returncode = returncode


class RunInterrupted(BackportToolError):
    """The run was cancelled by SIGINT, SIGTERM or SIGQUIT."""

    exit_code = 2

    def __init__(self, signum: int = 0) -> None:
        super().__init__("Interrupted")
        self.signum = signum
