import threading
from dataclasses import dataclass, field

import numpy as np

from distprimes.errors import WorkerFailed
from distprimes.partition import Range


@dataclass(frozen=True)
class PartialResult:
    worker_id: int
    range: Range
    count: int
    # only the in-process strategy ships the primes themselves
    primes: np.ndarray | None = None


@dataclass(frozen=True)
class AggregateResult:
    total_primes: int
    node_count: int
    elapsed: float
    per_node_counts: list[int]
    base_prime_count: int
    strategy: str
    limit: int
    segments: list[tuple[Range, int]] = field(default_factory=list)
    primes: np.ndarray | None = None

    @property
    def time_ms(self) -> float:
        return self.elapsed * 1000.0


class ResultSink:
    """Fixed slots indexed by worker id, each written exactly once.

    Writers may run on different threads; the lock is held only for the
    single slot assignment.
    """

    def __init__(self, worker_count: int):
        self._slots: list[PartialResult | None] = [None] * worker_count
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._slots)

    def put(self, partial: PartialResult) -> None:
        if not 0 <= partial.worker_id < len(self._slots):
            raise WorkerFailed(partial.worker_id, "no such worker slot")
        with self._lock:
            if self._slots[partial.worker_id] is not None:
                raise WorkerFailed(partial.worker_id, "result delivered twice")
            self._slots[partial.worker_id] = partial

    def drain(self) -> list[PartialResult]:
        """Return every slot in worker order; a missing result is fatal."""
        with self._lock:
            slots = list(self._slots)
            self._slots = [None] * len(slots)
        for worker_id, partial in enumerate(slots):
            if partial is None:
                raise WorkerFailed(worker_id, "no result delivered")
        return slots


def aggregate(
    limit: int,
    base_primes: np.ndarray,
    partials: list[PartialResult],
    *,
    strategy: str,
    elapsed: float,
) -> AggregateResult:
    """
    Merge partial results into one ordered answer.

    Base primes are counted once here; workers only ever sieve above the base
    prime limit. Arrival order does not matter, worker ids put the partials
    back in range order.
    """
    ordered = sorted(partials, key=lambda partial: partial.worker_id)
    ids = [partial.worker_id for partial in ordered]
    if ids != list(range(len(ordered))):
        missing = sorted(set(range(max(ids, default=-1) + 1)) - set(ids))
        if missing:
            raise WorkerFailed(missing[0], "no result delivered")
        duplicate = next(i for i in ids if ids.count(i) > 1)
        raise WorkerFailed(duplicate, "result delivered twice")

    per_node_counts = [partial.count for partial in ordered]
    primes = None
    if all(partial.primes is not None for partial in ordered):
        primes = np.concatenate([np.asarray(base_primes, dtype=np.int64)] + [partial.primes for partial in ordered])

    return AggregateResult(
        total_primes=len(base_primes) + sum(per_node_counts),
        node_count=len(ordered),
        elapsed=elapsed,
        per_node_counts=per_node_counts,
        base_prime_count=len(base_primes),
        strategy=strategy,
        limit=limit,
        segments=[(partial.range, partial.count) for partial in ordered],
        primes=primes,
    )
