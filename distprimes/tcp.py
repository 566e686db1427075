import logging
import socket

from distprimes import wire
from distprimes.errors import TransportError, TransportUnavailable
from distprimes.partition import Range, WorkAssignment
from distprimes.results import PartialResult
from distprimes.sieve import sieve_segment
from distprimes.transport import Transport, sieve_assignment

logger = logging.getLogger(__name__)

COORDINATOR = 0


class SocketTransport(Transport):
    """
    Coordinator side of the TCP fallback.

    The coordinator takes share 0 itself; the i-th accepted connection gets
    share i + 1. Everything is sequential and blocking: accept all workers,
    send every work message, sieve the local share, then read the results in
    connection order.
    """

    name = "tcp"

    def __init__(
        self,
        address: tuple[str, int],
        accept_timeout: float | None = None,
        io_timeout: float | None = None,
    ):
        self.address = address
        self.accept_timeout = accept_timeout
        self.io_timeout = io_timeout
        self._listener: socket.socket | None = None
        self._workers: list[socket.socket] = []
        self._ranges: dict[int, Range] = {}
        self._local: WorkAssignment | None = None

    def open(self) -> None:
        if self._listener is not None:
            return
        host, port = self.address
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((host, port))
            listener.listen()
        except OSError as exc:
            listener.close()
            raise TransportUnavailable(f"failed to bind {host}:{port}: {exc}") from exc
        self._listener = listener
        # port 0 asks the OS for a free one
        self.address = listener.getsockname()[:2]
        logger.info("Master listening on %s:%d", *self.address)

    def execution_units(self, requested: int) -> int:
        if requested < 1:
            raise ValueError(f"worker count must be >= 1, got {requested}")
        if self._listener is None:
            raise RuntimeError("open() must be called before execution_units()")
        logger.info("Waiting for %d workers to connect...", requested)
        self._listener.settimeout(self.accept_timeout)
        while len(self._workers) < requested:
            try:
                conn, peer = self._listener.accept()
            except socket.timeout as exc:
                raise TransportError(
                    f"only {len(self._workers)} of {requested} workers connected within {self.accept_timeout}s"
                ) from exc
            except OSError as exc:
                raise TransportError(f"accept failed: {exc}") from exc
            conn.settimeout(self.io_timeout)
            self._workers.append(conn)
            logger.info("  Worker %d connected from %s:%d", len(self._workers), *peer[:2])
        return len(self._workers) + 1

    def dispatch(self, assignment: WorkAssignment) -> None:
        self._ranges[assignment.worker_id] = assignment.range
        if assignment.worker_id == COORDINATOR:
            self._local = assignment
            return
        conn = self._workers[assignment.worker_id - 1]
        low, high = assignment.range
        logger.debug("  Sending work to worker %d: [%d, %d]", assignment.worker_id, low, high)
        wire.send_work(conn, low, high, assignment.base_primes)

    def collect(self) -> list[PartialResult]:
        if self._local is None:
            raise TransportError("coordinator share was never dispatched")
        partials = [sieve_assignment(self._local)]
        self._local = None
        logger.debug("  Master %s -> %d primes", tuple(partials[0].range), partials[0].count)

        for worker_id, conn in enumerate(self._workers, start=1):
            count = wire.recv_result(conn)
            logger.debug("  Worker %d returned %d primes", worker_id, count)
            partials.append(PartialResult(worker_id=worker_id, range=self._ranges[worker_id], count=count))
        return partials

    def close(self) -> None:
        for conn in self._workers:
            conn.close()
        self._workers = []
        self._ranges = {}
        if self._listener is not None:
            self._listener.close()
            self._listener = None


def run_worker(address: tuple[str, int], timeout: float | None = None) -> tuple[Range, int]:
    """
    Connect once, sieve the one segment the coordinator sends, reply with its count.

    Returns the range that was sieved and the number of primes found in it.
    """
    host, port = address
    logger.info("Connecting to master at %s:%d...", host, port)
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as exc:
        raise TransportError(f"connection to {host}:{port} failed: {exc}") from exc

    with sock:
        sock.settimeout(timeout)
        logger.info("Connected to master")
        low, high, base_primes = wire.recv_work(sock)
        logger.debug("Received work: [%d, %d] with %d base primes", low, high, base_primes.size)

        count = int(sieve_segment(low, high, base_primes).size)
        logger.debug("Found %d primes", count)

        wire.send_result(sock, count)
        logger.info("Result sent to master")
    return Range(low, high), count
