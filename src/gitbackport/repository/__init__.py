"""Repository access, persisted settings and working-tree restoration."""

from gitbackport.repository.git_repository import GitRepository
from gitbackport.repository.guard import CheckoutGuard, interrupt_signals
from gitbackport.repository.settings_store import RepoSettingsStore

__all__ = [
    "GitRepository",
    "CheckoutGuard",
    "interrupt_signals",
    "RepoSettingsStore",
]
