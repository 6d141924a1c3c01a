"""Data models for the backport tools."""

from gitbackport.models.commit import (
    BackportEntry,
    Classification,
    CommitOutcome,
    CommitRecord,
    MatchResult,
    PatchComparison,
    StepResult,
)
from gitbackport.models.config import (
    BackportDiffConfig,
    CompileCheckConfig,
    ForeachConfig,
    IterationOrder,
    MatchPreference,
    RunnerConfig,
    Settings,
    ToolConfig,
)

__all__ = [
    "CommitRecord",
    "Classification",
    "PatchComparison",
    "MatchResult",
    "BackportEntry",
    "StepResult",
    "CommitOutcome",
    "ToolConfig",
    "RunnerConfig",
    "CompileCheckConfig",
    "ForeachConfig",
    "BackportDiffConfig",
    "IterationOrder",
    "MatchPreference",
    "Settings",
]
