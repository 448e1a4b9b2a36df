"""Per-user exclusion around decision computation"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from budget_copilot.domain.exceptions import ConcurrentComputeConflictError


class UserLocks:
    """
    Registry of one lock per user id, shared by every computation in the process.

    Locks are created on first use and kept; the registry only grows with
    the number of distinct users seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: str, timeout_seconds: float) -> Iterator[None]:
        """
        Hold the user's lock for the duration of the block.

        Raises:
            ConcurrentComputeConflictError: lock not acquired within the timeout
        """
        lock = self.lock_for(user_id)
        if not lock.acquire(timeout=max(timeout_seconds, 0)):
            raise ConcurrentComputeConflictError(f"Decision computation already running for user {user_id}")
        try:
            yield
        finally:
            lock.release()
