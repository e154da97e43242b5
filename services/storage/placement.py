"""
Placement strategies for choosing which account receives a write.
"""

import threading
from abc import ABC, abstractmethod

from core.exceptions import StorageUnavailableError


class PlacementStrategy(ABC):
    """Decide which account index receives the next write."""

    @property
    @abstractmethod
    def account_count(self) -> int:
        """Number of accounts the strategy distributes over."""
        pass

    @abstractmethod
    def next_account(self) -> int:
        """Return the account index for the next write."""
        pass


class RoundRobinPlacement(PlacementStrategy):
    """
    Plain round-robin over the configured accounts.

    The cursor is shared by all concurrent uploads; reading and advancing it
    happens under a lock so two callers never observe the same position.
    """

    def __init__(self, account_count: int, start: int = 0):
        self._account_count = account_count
        self._cursor = start % account_count if account_count else 0
        self._lock = threading.Lock()

    @property
    def account_count(self) -> int:
        return self._account_count

    def next_account(self) -> int:
        if self._account_count == 0:
            raise StorageUnavailableError(message="No storage accounts configured")

        with self._lock:
            index = self._cursor
            self._cursor = (self._cursor + 1) % self._account_count
        return index

    def peek(self) -> int:
        """Current cursor position without advancing it."""
        with self._lock:
            return self._cursor
