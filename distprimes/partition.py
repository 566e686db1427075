from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

U64_MAX = 2**64 - 1


class Range(NamedTuple):
    """Inclusive interval [low, high]; empty when low > high."""

    low: int
    high: int

    @property
    def empty(self) -> bool:
        return self.low > self.high

    @property
    def size(self) -> int:
        return 0 if self.empty else self.high - self.low + 1


@dataclass(frozen=True)
class WorkAssignment:
    worker_id: int
    range: Range
    # shared read-only for the whole run, never copied per worker
    base_primes: np.ndarray


def partition(limit: int, base_prime_limit: int, worker_count: int) -> list[Range]:
    """
    Split [base_prime_limit + 1, limit] into worker_count contiguous ranges.

    Every worker gets ceil(range_size / worker_count) numbers except the tail;
    workers whose start lies past 'limit' get an empty range.
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1, got {worker_count}")
    if not 0 <= limit <= U64_MAX:
        raise ValueError(f"limit must fit an unsigned 64-bit integer, got {limit}")

    range_start = base_prime_limit + 1
    range_size = max(limit - base_prime_limit, 0)
    segment_size = -(-range_size // worker_count)

    ranges = []
    for i in range(worker_count):
        low = range_start + i * segment_size
        high = min(low + segment_size - 1, limit)
        if low > limit:
            # nothing left for this worker
            high = low - 1
        ranges.append(Range(low, high))
    return ranges


def plan_assignments(limit: int, base_prime_limit: int, worker_count: int, base_primes) -> list[WorkAssignment]:
    """One WorkAssignment per worker, in worker order."""
    return [
        WorkAssignment(worker_id, r, base_primes)
        for worker_id, r in enumerate(partition(limit, base_prime_limit, worker_count))
    ]
