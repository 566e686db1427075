import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from distprimes.errors import WorkerFailed
from distprimes.partition import WorkAssignment
from distprimes.results import PartialResult, ResultSink
from distprimes.sieve import sieve_segment

logger = logging.getLogger(__name__)


class Transport:
    """
    How work assignments reach execution units and how partial results come back.

    Lifecycle: open() -> execution_units() -> dispatch() per assignment ->
    collect() -> close(). open() raises TransportUnavailable when the mechanism
    can not be used at all; anything that goes wrong after that is fatal.
    """

    name = "abstract"

    # only the root produces the final result
    is_root = True

    def open(self) -> None:
        pass

    def execution_units(self, requested: int) -> int:
        """Number of shares the range has to be split into."""
        return requested

    def dispatch(self, assignment: WorkAssignment) -> None:
        raise NotImplementedError(f"{type(self).__name__}.dispatch must be implemented")

    def collect(self) -> list[PartialResult]:
        raise NotImplementedError(f"{type(self).__name__}.collect must be implemented")

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def sieve_assignment(assignment: WorkAssignment, keep_primes: bool = False) -> PartialResult:
    """Run the segment sieve for one assignment."""
    low, high = assignment.range
    seg_primes = sieve_segment(low, high, assignment.base_primes)
    logger.debug("worker %d: [%d, %d] -> %d primes", assignment.worker_id, low, high, seg_primes.size)
    return PartialResult(
        worker_id=assignment.worker_id,
        range=assignment.range,
        count=int(seg_primes.size),
        primes=seg_primes if keep_primes else None,
    )


class InProcessTransport(Transport):
    """One thread per assignment, all sharing the same base prime array."""

    name = "threads"

    def __init__(self, keep_primes: bool = True):
        self.keep_primes = keep_primes
        self._executor: ThreadPoolExecutor | None = None
        self._sink: ResultSink | None = None
        self._futures: dict[object, int] = {}

    def execution_units(self, requested: int) -> int:
        if requested < 1:
            raise ValueError(f"worker count must be >= 1, got {requested}")
        self.close()
        self._sink = ResultSink(requested)
        self._executor = ThreadPoolExecutor(max_workers=requested, thread_name_prefix="sieve")
        return requested

    def _work(self, assignment: WorkAssignment) -> None:
        self._sink.put(sieve_assignment(assignment, self.keep_primes))

    def dispatch(self, assignment: WorkAssignment) -> None:
        if self._executor is None:
            raise RuntimeError("execution_units() must be called before dispatch()")
        future = self._executor.submit(self._work, assignment)
        self._futures[future] = assignment.worker_id

    def collect(self) -> list[PartialResult]:
        if self._executor is None:
            raise RuntimeError("execution_units() must be called before collect()")
        try:
            # join everything; the first failing worker fails the whole run
            for future in as_completed(list(self._futures)):
                exc = future.exception()
                if exc is not None:
                    worker_id = self._futures[future]
                    if isinstance(exc, WorkerFailed):
                        raise exc
                    raise WorkerFailed(worker_id, f"sieving failed: {exc!r}") from exc
            return self._sink.drain()
        finally:
            self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._futures = {}
