"""
Identifier sources for queue items, customers and datasets.

Engine functions accept any zero-argument callable returning a string, so
tests can pass a SequentialIds counter and assert exact IDs.
"""
import itertools
import uuid
from typing import Callable

IdFactory = Callable[[], str]


def uuid4_ids() -> str:
    """Production ID source: random UUID4 strings."""
    return str(uuid.uuid4())


class SequentialIds:
    """Deterministic ID source: prefix-1, prefix-2, ..."""

    def __init__(self, prefix: str = "id", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"
