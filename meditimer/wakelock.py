"""Keep the machine awake while a session runs.

On macOS this holds a ``caffeinate`` child process for as long as the
lock is acquired; ``-w`` ties it to our PID so a crash never leaves the
display pinned on.  Elsewhere the lock is a logged no-op.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

logger = logging.getLogger(__name__)


class CaffeinateWakeLock:
    """``WakeLock`` built on the ``caffeinate`` utility.

    ``acquire`` and ``release`` are idempotent and never raise; they
    return False when the lock could not be taken or dropped.
    """

    def __init__(self, executable: str | None = None, *, enabled: bool = True) -> None:
        self._executable = executable or shutil.which("caffeinate")
        self._enabled = enabled
        self._proc: subprocess.Popen | None = None
        # Terminated children not yet reaped
        self._exiting: list[subprocess.Popen] = []

    @property
    def held(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def acquire(self) -> bool:
        self._reap()
        if not self._enabled:
            return False
        if self.held:
            return True
        if self._executable is None:
            logger.info("No caffeinate on this system; wake-lock unavailable")
            return False
        try:
            self._proc = subprocess.Popen(
                [self._executable, "-d", "-i", "-w", str(os.getpid())],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            logger.warning("Failed to activate wake-lock", exc_info=True)
            self._proc = None
            return False
        return True

    def release(self) -> bool:
        """Signal the child to exit without waiting for it."""
        self._reap()
        proc, self._proc = self._proc, None
        if proc is None:
            return True
        try:
            proc.terminate()
        except OSError:
            logger.warning("Failed to deactivate wake-lock", exc_info=True)
            return False
        self._exiting.append(proc)
        return True

    def _reap(self) -> None:
        self._exiting = [p for p in self._exiting if p.poll() is None]
