"""Per-commit iteration over a revision range."""

from gitbackport.iteration.compile_check import CompileCheck
from gitbackport.iteration.foreach import ForeachRunner
from gitbackport.iteration.runner import RangeRunner, RunLog, interrupted_by_signal, run_logged

__all__ = [
    "RangeRunner",
    "RunLog",
    "run_logged",
    "interrupted_by_signal",
    "CompileCheck",
    "ForeachRunner",
]
