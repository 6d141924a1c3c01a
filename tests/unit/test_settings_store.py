"""Unit tests for settings persisted in git config."""

from pathlib import Path

import pytest

from gitbackport.errors import InvalidOptionError
from gitbackport.models import BackportDiffConfig, CompileCheckConfig, IterationOrder, MatchPreference
from gitbackport.repository import GitRepository, RepoSettingsStore
from gitbackport.repository.settings_store import option_name, serialize


@pytest.fixture
def store(linear_repo):
    """Create a RepoSettingsStore on the linear repository."""
    return RepoSettingsStore(GitRepository(Path(linear_repo.working_tree_dir)))


def set_option(repo, section, option, value):
    writer = repo.config_writer(config_level="repository")
    writer.set_value(section, option, value)
    writer.release()


def test_option_names_use_aliases():
    """Test that git config option names come from field aliases."""
    assert option_name(BackportDiffConfig, "commit_range") == "range"
    assert option_name(BackportDiffConfig, "diff_prog") == "diffprog"
    assert option_name(BackportDiffConfig, "upstream") == "upstream"
    assert option_name(CompileCheckConfig, "config_opts") == "configopts"


def test_serialize():
    """Test rendering of values for git config."""
    assert serialize(True) == "true"
    assert serialize(False) == "false"
    assert serialize(IterationOrder.NEWEST_FIRST) == "newest-first"
    assert serialize(3) == "3"


def test_load_builtin_defaults(store):
    """Test that built-in defaults apply when nothing is persisted."""
    config = store.load(BackportDiffConfig)

    assert config.upstream == "origin/master"
    assert config.diff_prog == "meld"
    assert config.sensitivity == 0
    assert config.commit_range == "HEAD^..HEAD"
    assert config.prefer == MatchPreference.NEWEST


def test_load_persisted_over_default(store, linear_repo):
    """Test that persisted values override built-in defaults."""
    set_option(linear_repo, "backport-diff", "upstream", "stable/main")
    set_option(linear_repo, "backport-diff", "sensitivity", "1")
    set_option(linear_repo, "backport-diff", "color", "false")

    config = store.load(BackportDiffConfig)

    assert config.upstream == "stable/main"
    assert config.sensitivity == 1
    assert config.color is False


def test_load_override_over_persisted(store, linear_repo):
    """Test that command-line values override persisted ones."""
    set_option(linear_repo, "backport-diff", "upstream", "stable/main")

    config = store.load(BackportDiffConfig, upstream="next", sensitivity=None)

    assert config.upstream == "next"
    assert config.sensitivity == 0


def test_load_invalid_value(store):
    """Test that invalid values raise InvalidOptionError."""
    with pytest.raises(InvalidOptionError, match="sensitivity"):
        store.load(BackportDiffConfig, sensitivity=-1)


def test_load_invalid_persisted_value(store, linear_repo):
    """Test that a bad persisted value is also rejected."""
    set_option(linear_repo, "compile-check", "order", "sideways")

    with pytest.raises(InvalidOptionError, match="compile-check"):
        store.load(CompileCheckConfig)


def test_load_text_overrides(store):
    """Test that command-line text is converted like persisted values."""
    config = store.load(BackportDiffConfig, sensitivity="2", prefer="oldest")

    assert config.sensitivity == 2
    assert config.prefer == MatchPreference.OLDEST


@pytest.mark.parametrize(
    "overrides",
    [{"sensitivity": "abc"}, {"prefer": "middle"}, {"order": "sideways"}],
)
def test_load_invalid_text_overrides(store, overrides):
    """Test that unparsable command-line text raises InvalidOptionError."""
    config_cls = CompileCheckConfig if "order" in overrides else BackportDiffConfig

    with pytest.raises(InvalidOptionError):
        store.load(config_cls, **overrides)


@pytest.mark.parametrize("value", ["", "   "])
def test_load_blank_diff_viewer(store, value):
    """Test that an empty diff viewer command is rejected."""
    with pytest.raises(InvalidOptionError, match="diff viewer command is required"):
        store.load(BackportDiffConfig, diff_prog=value)


def test_load_blank_persisted_diff_viewer(store, linear_repo):
    """Test that an empty viewer in git config is rejected too."""
    set_option(linear_repo, "backport-diff", "diffprog", "")

    with pytest.raises(InvalidOptionError, match="diff viewer command is required"):
        store.load(BackportDiffConfig)


def test_seed_defaults_writes_missing_only(store, linear_repo):
    """Test that seeding writes defaults and keeps existing values."""
    set_option(linear_repo, "backport-diff", "upstream", "stable/main")

    written = store.seed_defaults(BackportDiffConfig)

    assert "upstream" not in written
    assert "diffprog" in written
    reader = linear_repo.config_reader(config_level="repository")
    assert reader.get("backport-diff", "upstream") == "stable/main"
    assert reader.get("backport-diff", "diffprog") == "meld"
    assert reader.get("backport-diff", "summary") == "false"
    reader.release()


def test_seed_defaults_ignores_overrides(store, linear_repo):
    """Test that seeding stores the built-in default, not the command-line value."""
    store.load(BackportDiffConfig, upstream="next")
    store.seed_defaults(BackportDiffConfig)

    reader = linear_repo.config_reader(config_level="repository")
    assert reader.get("backport-diff", "upstream") == "origin/master"
    reader.release()


def test_seed_defaults_is_one_time(store):
    """Test that a second seeding writes nothing."""
    assert store.seed_defaults(CompileCheckConfig)
    assert store.seed_defaults(CompileCheckConfig) == []


def test_log_path():
    """Test log path composition."""
    assert CompileCheckConfig().log_path == Path("git-compile-check.log")
    assert CompileCheckConfig(log_dir="/tmp/logs").log_path == Path("/tmp/logs/git-compile-check.log")
