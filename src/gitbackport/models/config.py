"""Configuration models."""

from enum import Enum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IterationOrder(str, Enum):
    """Order in which the commits of a range are visited."""

    OLDEST_FIRST = "oldest-first"
    NEWEST_FIRST = "newest-first"


class MatchPreference(str, Enum):
    """Which upstream commit wins when several share the downstream subject."""

    NEWEST = "newest"
    OLDEST = "oldest"


class ToolConfig(BaseModel):
    """Settings common to every tool.

    Field aliases are the option names under the tool's section of the
    repository's git config (e.g. ``backport-diff.upstream``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    section: ClassVar[str] = ""

    commit_range: str = Field("HEAD^..HEAD", alias="range", description="Revision range to process")


class RunnerConfig(ToolConfig):
    """Settings for the tools that check out every commit of the range."""

    order: IterationOrder = Field(IterationOrder.OLDEST_FIRST, description="Iteration order")
    log_dir: str = Field("", alias="logdir", description="Directory of the log file, empty for cwd")
    log_file: str = Field("git-range.log", alias="logfile", description="Log file name")

    @property
    def log_path(self) -> Path:
        """Full path of the log file."""
        return Path(self.log_dir) / self.log_file if self.log_dir else Path(self.log_file)


class CompileCheckConfig(RunnerConfig):
    """Configuration for ``git compile-check``."""

    section: ClassVar[str] = "compile-check"

    log_file: str = Field("git-compile-check.log", alias="logfile", description="Log file name")
    make: str = Field("make", description="Build command")
    configure: str = Field("./configure", description="Configure command")
    config_opts: str = Field("", alias="configopts", description="Options passed to configure")
    make_opts: str = Field("", alias="makeopts", description="Options passed to the build command")
    clean_tree: bool = Field(
        False, alias="cleantree", description="Hard-reset and remove untracked files before each build"
    )
    skip_configure: bool = Field(False, alias="skipconfigure", description="Do not run configure")
    keep_going: bool = Field(False, alias="keepgoing", description="Continue after a failed build")


class ForeachConfig(RunnerConfig):
    """Configuration for ``git foreach``."""

    section: ClassVar[str] = "foreach"

    log_file: str = Field("git-foreach.log", alias="logfile", description="Log file name")
    command: str = Field("", description="Shell command run on every commit")
    ignore_errors: bool = Field(
        False, alias="ignoreerrors", description="Treat a failing command as non-fatal"
    )


class BackportDiffConfig(ToolConfig):
    """Configuration for ``git backport-diff``."""

    section: ClassVar[str] = "backport-diff"

    upstream: str = Field("origin/master", description="Upstream reference searched for matches")
    diff_prog: str = Field("meld", alias="diffprog", description="Interactive diff viewer")
    sensitivity: int = Field(
        0,
        ge=0,
        description="0: functional differences, 1: also contextual, 2+: every matched commit",
    )
    summary: bool = Field(False, description="Only print the summary, never offer the viewer")
    pause: bool = Field(True, description="Ask before opening each queued diff")
    color: bool = Field(True, description="Colorize the summary")
    prefer: MatchPreference = Field(
        MatchPreference.NEWEST, description="Upstream match used when subjects collide"
    )

    @field_validator("diff_prog")
    @classmethod
    def _require_viewer(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("a diff viewer command is required")
        return value


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GIT_BACKPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "WARNING"
    log_format: str = "console"
