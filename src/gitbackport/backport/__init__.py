"""Comparison of backported commits with their upstream originals."""

from gitbackport.backport.comparator import BackportComparator, build_report, should_queue
from gitbackport.backport.matcher import UpstreamMatcher
from gitbackport.backport.patch_diff import compare_patches, content_lines, context_lines, count_differences
from gitbackport.backport.viewer import DiffViewer, ReviewSession

__all__ = [
    "BackportComparator",
    "build_report",
    "should_queue",
    "UpstreamMatcher",
    "compare_patches",
    "content_lines",
    "context_lines",
    "count_differences",
    "DiffViewer",
    "ReviewSession",
]
