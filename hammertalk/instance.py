"""Single-instance guard backed by a PID file."""

import errno
import logging
import os
from typing import Optional

from hammertalk.config import get_pid_path
from hammertalk.errors import AlreadyRunning

logger = logging.getLogger(__name__)


def read_pid(path: str) -> Optional[int]:
    """Return the PID recorded at ``path``, or None if missing or unparseable."""
    try:
        with open(path) as f:
            return int(f.read().strip())
    except FileNotFoundError:
        return None
    except ValueError:
        return None


def pid_alive(pid: int) -> bool:
    """Best-effort check that a process with ``pid`` exists.

    EPERM means the process exists but belongs to someone else, which
    counts as alive.
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class InstanceLock:
    """PID file that makes sure only one daemon runs per user.

    ``acquire`` creates the file exclusively. If it already exists and the
    recorded process is alive, ``AlreadyRunning`` is raised; a stale file
    is replaced.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or get_pid_path()
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> "InstanceLock":
        for _ in range(2):
            try:
                fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
            except FileExistsError:
                self._reclaim_if_stale()
                continue
            with os.fdopen(fd, "w") as f:
                f.write(f"{os.getpid()}\n")
            self._held = True
            logger.info("PID file written to %s", self.path)
            return self
        # Lost a race with another starting instance
        raise AlreadyRunning(read_pid(self.path) or -1, self.path)

    def _reclaim_if_stale(self) -> None:
        pid = read_pid(self.path)
        if pid is not None and pid != os.getpid() and pid_alive(pid):
            raise AlreadyRunning(pid, self.path)
        logger.info("Removing stale PID file %s (pid %s)", self.path, pid)
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def release(self) -> None:
        """Remove the PID file if this process holds it."""
        if not self._held:
            return
        self._held = False
        try:
            os.remove(self.path)
        except OSError as e:
            if e.errno != errno.ENOENT:
                logger.warning("Failed to remove PID file %s: %s", self.path, e)
            return
        logger.debug("PID file %s removed", self.path)

    def __enter__(self) -> "InstanceLock":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
