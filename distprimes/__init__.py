"""Segmented Sieve of Eratosthenes spread over threads, MPI ranks or TCP workers."""

from distprimes.config import ClusterConfig
from distprimes.errors import ProtocolError, SieveError, TransportError, TransportUnavailable, WorkerFailed
from distprimes.orchestrator import Orchestrator, execute, run, run_single_node
from distprimes.partition import Range, WorkAssignment, partition
from distprimes.results import AggregateResult, PartialResult, ResultSink, aggregate
from distprimes.sieve import base_prime_limit, sieve_segment, simple_sieve

__version__ = "0.1.0"

__all__ = [
    "AggregateResult",
    "ClusterConfig",
    "Orchestrator",
    "PartialResult",
    "ProtocolError",
    "Range",
    "ResultSink",
    "SieveError",
    "TransportError",
    "TransportUnavailable",
    "WorkAssignment",
    "WorkerFailed",
    "aggregate",
    "base_prime_limit",
    "execute",
    "partition",
    "run",
    "run_single_node",
    "sieve_segment",
    "simple_sieve",
]
