"""
Advisory lock shared by the sync actors.

The lock is a marker file: it exists while a full reindex runs. It has no
effect on the store, every writer checks ``is_locked()`` before writing.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class LockHeldError(RuntimeError):
    """Raised when the lock is already held by another run."""

    pass


class LockCoordinator:
    """File-marker lock for the full reindex run."""

    def __init__(self, path: str | Path):
        self.lock_file = Path(path)

    def is_locked(self) -> bool:
        """Check if the lock is currently held."""
        return self.lock_file.exists()

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns True if the lock was acquired, False if it is already held.
        """
        try:
            fd = os.open(self.lock_file, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            logger.warning("Full reindex already in progress (lock held)")
            return False

        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        logger.info("Lock acquired")
        return True

    def release(self) -> None:
        """Release the lock."""
        self.lock_file.unlink(missing_ok=True)
        logger.info("Lock released")

    @contextmanager
    def hold(self):
        """Context manager for lock acquisition."""
        if not self.acquire():
            raise LockHeldError(f"Lock already held: {self.lock_file}")
        try:
            yield self
        finally:
            self.release()
