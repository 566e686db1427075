import logging

from distprimes.errors import TransportError, TransportUnavailable
from distprimes.partition import WorkAssignment
from distprimes.results import PartialResult
from distprimes.transport import Transport, sieve_assignment

logger = logging.getLogger(__name__)

ROOT = 0


class CollectiveTransport(Transport):
    """
    Peer processes launched together (mpirun -np N python -m distprimes --strategy mpi).

    There is no dispatch message: every rank recomputes the base primes and the
    partition itself and keeps only the assignment matching its rank. collect()
    gathers the per-rank counts into rank 0, which is the only rank that
    returns anything.
    """

    name = "mpi"

    def __init__(self, comm=None):
        self.comm = comm
        self.rank = 0
        self.size = 1
        self._local: PartialResult | None = None

    def open(self) -> None:
        if self.comm is None:
            try:
                from mpi4py import MPI
            except ImportError as exc:
                raise TransportUnavailable(f"mpi4py is not installed: {exc}") from exc
            except RuntimeError as exc:
                # MPI_Init failed
                raise TransportUnavailable(f"failed to initialize MPI: {exc}") from exc
            self.comm = MPI.COMM_WORLD
        try:
            self.rank = self.comm.Get_rank()
            self.size = self.comm.Get_size()
        except Exception as exc:
            raise TransportUnavailable(f"MPI communicator unusable: {exc}") from exc
        logger.debug("MPI rank %d of %d", self.rank, self.size)

    @property
    def is_root(self) -> bool:
        return self.rank == ROOT

    def execution_units(self, requested: int) -> int:
        if requested != self.size and self.is_root:
            logger.info("MPI group has %d ranks, ignoring requested worker count %d", self.size, requested)
        return self.size

    def dispatch(self, assignment: WorkAssignment) -> None:
        # every rank sees the full plan, it only works on its own share
        if assignment.worker_id != self.rank:
            return
        self._local = sieve_assignment(assignment)

    def collect(self) -> list[PartialResult]:
        if self._local is None:
            raise TransportError(f"rank {self.rank} was not given an assignment")
        local, self._local = self._local, None
        try:
            gathered = self.comm.gather((local.range, local.count), root=ROOT)
        except Exception as exc:
            raise TransportError(f"gather failed on rank {self.rank}: {exc}") from exc
        if not self.is_root:
            return []
        return [
            PartialResult(worker_id=rank, range=r, count=count)
            for rank, (r, count) in enumerate(gathered)
        ]
