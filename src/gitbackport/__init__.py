"""Git helpers for patch-backport workflows."""

__version__ = "0.1.0"
