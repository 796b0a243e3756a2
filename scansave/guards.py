"""
In-flight guards

A second attempt to start an operation that is still running is rejected,
never queued. Guards are plain tokens: asyncio runs on one thread, so
checking and taking a token cannot interleave with another task.
"""

from contextlib import contextmanager
from typing import Hashable, Iterator


class OperationInProgressError(Exception):
    """The guarded operation is already running."""

    def __init__(self, resource: Hashable):
        self.resource = resource
        super().__init__(f"Operation already in progress: {resource}")


class InFlightGuard:
    """
    Mutual-exclusion tokens keyed by resource.

    Usage:
        with guard.acquire("upload"):
            await do_upload()
    """

    def __init__(self):
        self._held: set[Hashable] = set()

    def is_held(self, resource: Hashable) -> bool:
        return resource in self._held

    def try_acquire(self, resource: Hashable) -> bool:
        """Take the token if free. Returns False when already held."""
        if resource in self._held:
            return False
        self._held.add(resource)
        return True

    def release(self, resource: Hashable) -> None:
        self._held.discard(resource)

    @contextmanager
    def acquire(self, resource: Hashable) -> Iterator[None]:
        """
        Hold the token for the duration of the block.

        Raises:
            OperationInProgressError: If the token is already held
        """
        if not self.try_acquire(resource):
            raise OperationInProgressError(resource)
        try:
            yield
        finally:
            self.release(resource)
