class SieveError(Exception):
    """Base class for failures of a distributed sieve run."""


class TransportUnavailable(SieveError):
    """The distribution mechanism could not be initialized; try the next one."""


class TransportError(SieveError):
    """Accept, connect, read or write failed. Fatal to the current run."""


class ProtocolError(TransportError):
    """A work or result message was malformed or truncated."""


class WorkerFailed(SieveError):
    """A worker did not deliver its share of the run."""

    def __init__(self, worker_id, message):
        super().__init__(f"worker {worker_id}: {message}")
        self.worker_id = worker_id
