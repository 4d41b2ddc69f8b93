"""At most one in-flight scan per repository within this process."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from app.services.file_walker import ScanError


class ScanAlreadyRunningError(ScanError):
    """Raised when a scan is requested for a repository that is already being scanned."""

    def __init__(self, repo_id: int) -> None:
        self.repo_id = repo_id
        super().__init__(f"A security scan is already running for repository {repo_id}.")


class ScanLockRegistry:
    """
    Set of repository ids with a scan in flight, guarded by a thread lock.

    Callers that hand work to a background task use try_acquire/release;
    in-line callers use hold().
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._active: set[int] = set()

    def try_acquire(self, repo_id: int) -> bool:
        with self._mutex:
            if repo_id in self._active:
                return False
            self._active.add(repo_id)
            return True

    def release(self, repo_id: int) -> None:
        with self._mutex:
            self._active.discard(repo_id)

    def is_running(self, repo_id: int) -> bool:
        with self._mutex:
            return repo_id in self._active

    @contextmanager
    def hold(self, repo_id: int) -> Iterator[None]:
        """Raises ScanAlreadyRunningError if repo_id is already held."""
        if not self.try_acquire(repo_id):
            raise ScanAlreadyRunningError(repo_id)
        try:
            yield
        finally:
            self.release(repo_id)


scan_locks = ScanLockRegistry()


def get_scan_locks() -> ScanLockRegistry:
    """Dependency returning the process-wide registry."""
    return scan_locks
