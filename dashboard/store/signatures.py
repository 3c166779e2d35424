"""
Signature ring buffer.

Keeps the most recent signatures, newest first. Appending past capacity
evicts the oldest entry.
"""

from collections import deque
from itertools import islice
from typing import Deque, Iterable, List

from dashboard.core.constants import SIGNATURE_CAPACITY
from dashboard.domain import Signature


class SignatureBuffer:
    """Bounded newest-first buffer of signatures."""

    def __init__(self, capacity: int = SIGNATURE_CAPACITY):
        if capacity < 1:
            raise ValueError("Signature buffer capacity must be at least 1")
        self._capacity = capacity
        # appendleft on a full deque drops from the right, i.e. the oldest entry
        self._buffer: Deque[Signature] = deque(maxlen=capacity)
        self._total_received = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total_received(self) -> int:
        return self._total_received

    def append(self, signature: Signature) -> None:
        self._buffer.appendleft(signature)
        self._total_received += 1

    def extend(self, signatures: Iterable[Signature]) -> None:
        """Append in iteration order; the last item ends up newest."""
        for signature in signatures:
            self.append(signature)

    def recent(self, n: int) -> List[Signature]:
        """The `n` newest signatures, newest first. Fewer if the buffer holds less."""
        if n <= 0:
            return []
        return list(islice(self._buffer, n))

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self):
        return iter(list(self._buffer))
