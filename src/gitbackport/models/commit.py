"""Data models for commits and per-commit results."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CommitRecord(BaseModel):
    """Read-only view of a single commit."""

    hash: str = Field(..., description="Full commit SHA hash")
    short_hash: str = Field(..., description="Short commit SHA hash (7 chars)")
    subject: str = Field(..., description="First line of the commit message")

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "hash": "3f1c2a9be0d14e6b8a51c0f7d2e9a4b6c8d0e1f2",
                "short_hash": "3f1c2a9",
                "subject": "block: fix use-after-free in drain",
            }
        }


class Classification(str, Enum):
    """Outcome of comparing a downstream commit with upstream."""

    DOWNSTREAM_ONLY = "downstream-only"
    IDENTICAL = "identical"
    FUNCTIONALLY_DIFFERENT = "functionally-different"
    CONTEXTUALLY_DIFFERENT = "contextually-different"


class PatchComparison(BaseModel):
    """Difference counts between an upstream and a downstream patch."""

    functional: int = Field(0, description="Differing +/- content lines")
    contextual: int = Field(0, description="Differing lines once hunk and index headers are stripped")

    @property
    def classification(self) -> Classification:
        if self.functional:
            return Classification.FUNCTIONALLY_DIFFERENT
        if self.contextual:
            return Classification.CONTEXTUALLY_DIFFERENT
        return Classification.IDENTICAL


class MatchResult(BaseModel):
    """A downstream commit and the upstream commit sharing its subject, if any."""

    downstream: CommitRecord
    upstream: Optional[CommitRecord] = None

    @property
    def matched(self) -> bool:
        return self.upstream is not None


class BackportEntry(BaseModel):
    """One line of the backport-diff report."""

    index: int = Field(..., description="1-based position in the range")
    total: int = Field(..., description="Number of commits in the range")
    match: MatchResult
    comparison: Optional[PatchComparison] = Field(None, description="Absent for downstream-only commits")
    queued: bool = Field(False, description="Whether the pair is offered to the diff viewer")

    @property
    def classification(self) -> Classification:
        if self.comparison is None:
            return Classification.DOWNSTREAM_ONLY
        return self.comparison.classification


class StepResult(BaseModel):
    """Result of the per-commit action of a range run."""

    success: bool = Field(..., description="Whether every step succeeded")
    step: Optional[str] = Field(None, description="Name of the failing step")
    returncode: int = Field(0, description="Exit status of the failing step")


class CommitOutcome(BaseModel):
    """A commit of the range together with the result of its action."""

    commit: CommitRecord
    result: StepResult
