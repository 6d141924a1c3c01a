"""Restoring the working tree after a run that checks out other commits."""

import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from gitbackport.errors import CheckoutError, RunInterrupted
from gitbackport.repository.git_repository import GitRepository

logger = structlog.get_logger(__name__)

INTERRUPT_SIGNALS = ("SIGTERM", "SIGQUIT")


class CheckoutGuard:
    """Context manager that puts back the originally checked-out ref.

    The original branch (or commit, when HEAD is detached) is captured on
    entry and checked out again on exit, whatever the exit path. The restore
    happens at most once and never raises.
    """

    def __init__(self, repository: GitRepository) -> None:
        self.repository = repository
        self.original_ref: Optional[str] = None
        self.released = False
        self.restored = False

    def __enter__(self) -> "CheckoutGuard":
        self.original_ref = self.repository.current_ref()
        logger.debug("checkout_guard_acquired", ref=self.original_ref)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.restore()
        return False

    def restore(self) -> bool:
        """Check out the original ref again.

        Returns:
            True if the original ref is checked out after the call
        """
        if self.released or self.original_ref is None:
            return self.restored

        self.released = True
        try:
            self.repository.checkout(self.original_ref)
        except CheckoutError as e:
            logger.error("checkout_restore_failed", ref=self.original_ref, error=str(e))
            return False

        self.restored = True
        logger.debug("checkout_guard_released", ref=self.original_ref)
        return True


@contextmanager
def interrupt_signals() -> Iterator[None]:
    """Turn SIGTERM and SIGQUIT into ``RunInterrupted`` for the enclosed block.

    SIGINT already surfaces as ``KeyboardInterrupt``. Handlers can only be
    installed from the main thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _raise(signum, frame):
        raise RunInterrupted(signum)

    previous = {}
    for name in INTERRUPT_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            previous[signum] = signal.signal(signum, _raise)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
