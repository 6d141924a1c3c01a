"""Unit tests for backport classification and reporting."""

from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from gitbackport.backport import BackportComparator, build_report, should_queue
from gitbackport.backport.comparator import format_badge, format_flags
from gitbackport.models import BackportDiffConfig, Classification, PatchComparison
from gitbackport.repository import GitRepository


def make_console():
    return Console(file=StringIO(), width=200, color_system=None)


def compare(repo, **settings):
    repository = GitRepository(Path(repo.working_tree_dir))
    config = BackportDiffConfig(commit_range="base..downstream", upstream="upstream", **settings)
    console = make_console()
    entries = BackportComparator(repository, config, console).compare()
    return entries, console.file.getvalue()


@pytest.mark.parametrize(
    "classification,sensitivity,expected",
    [
        (Classification.FUNCTIONALLY_DIFFERENT, 0, True),
        (Classification.CONTEXTUALLY_DIFFERENT, 0, False),
        (Classification.IDENTICAL, 0, False),
        (Classification.CONTEXTUALLY_DIFFERENT, 1, True),
        (Classification.IDENTICAL, 1, False),
        (Classification.IDENTICAL, 2, True),
        (Classification.IDENTICAL, 5, True),
        (Classification.DOWNSTREAM_ONLY, 2, False),
    ],
)
def test_should_queue(classification, sensitivity, expected):
    """Test queueing thresholds."""
    assert should_queue(classification, sensitivity) is expected


def test_badges_and_flags():
    """Test the difference badge and the FC flags."""
    assert format_badge(None) == "down"
    assert format_badge(PatchComparison(functional=0, contextual=3)) == "----"
    assert format_badge(PatchComparison(functional=12, contextual=12)) == "0012"
    assert format_flags(PatchComparison(functional=0, contextual=0)) == "--"
    assert format_flags(PatchComparison(functional=0, contextual=2)) == "-C"
    assert format_flags(PatchComparison(functional=2, contextual=2)) == "FC"


def test_classifies_every_commit_in_order(backport_repo):
    """Test classification of each kind of backport."""
    entries, _ = compare(backport_repo)

    assert [e.match.downstream.subject for e in entries] == [
        "local hack",
        "fix X",
        "add feature Y",
        "tweak Z",
    ]
    assert [e.classification for e in entries] == [
        Classification.DOWNSTREAM_ONLY,
        Classification.IDENTICAL,
        Classification.FUNCTIONALLY_DIFFERENT,
        Classification.CONTEXTUALLY_DIFFERENT,
    ]
    assert [e.index for e in entries] == [1, 2, 3, 4]
    assert all(e.total == 4 for e in entries)


def test_downstream_only_has_no_comparison(backport_repo):
    """Test that unmatched commits carry no diff count."""
    entries, _ = compare(backport_repo)

    assert entries[0].comparison is None
    assert not entries[0].queued


def test_functional_count(backport_repo):
    """Test the functional difference count of a changed line."""
    entries, _ = compare(backport_repo)

    assert entries[2].comparison.functional == 2
    assert entries[3].comparison.functional == 0
    assert entries[3].comparison.contextual > 0


def test_report_lines(backport_repo):
    """Test the printed summary lines."""
    _, output = compare(backport_repo)

    assert "001/004:[down] 'local hack'" in output
    assert "002/004:[----] [--] 'fix X'" in output
    assert "003/004:[0002] [FC] 'add feature Y'" in output
    assert "004/004:[----] [-C] 'tweak Z'" in output


@pytest.mark.parametrize(
    "sensitivity,queued_subjects",
    [
        (0, ["add feature Y"]),
        (1, ["add feature Y", "tweak Z"]),
        (2, ["fix X", "add feature Y", "tweak Z"]),
    ],
)
def test_sensitivity_queueing(backport_repo, sensitivity, queued_subjects):
    """Test which commits are queued for viewing at each sensitivity."""
    entries, _ = compare(backport_repo, sensitivity=sensitivity)

    assert [e.match.downstream.subject for e in entries if e.queued] == queued_subjects


def test_print_key():
    """Test the badge key."""
    console = make_console()
    comparator = BackportComparator(
        repository=None,
        config=BackportDiffConfig(color=False),
        console=console,
        matcher=object(),
    )

    comparator.print_key()

    output = console.file.getvalue()
    assert "[----] : patches are identical" in output
    assert "[down] : patch is downstream-only" in output
    assert "The flags [FC]" in output


def test_build_report(backport_repo):
    """Test the JSON report."""
    entries, _ = compare(backport_repo)

    report = build_report(entries)

    assert report[0]["classification"] == "downstream-only"
    assert report[0]["match"]["upstream"] is None
    assert report[2]["classification"] == "functionally-different"
    assert report[2]["comparison"]["functional"] == 2
    assert report[2]["queued"] is True
