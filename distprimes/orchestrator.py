import logging
import time
from collections.abc import Callable, Mapping, Sequence

from distprimes.collective import CollectiveTransport
from distprimes.config import DEFAULT_WORKERS, ClusterConfig
from distprimes.errors import TransportUnavailable
from distprimes.partition import U64_MAX, Range, plan_assignments
from distprimes.results import AggregateResult, aggregate
from distprimes.sieve import base_prime_limit, simple_sieve
from distprimes.tcp import SocketTransport
from distprimes.transport import InProcessTransport, Transport

logger = logging.getLogger(__name__)

SINGLE = "single"

TransportFactory = Callable[[ClusterConfig], Transport]

DEFAULT_FACTORIES: dict[str, TransportFactory] = {
    "threads": lambda config: InProcessTransport(keep_primes=config.keep_primes),
    "mpi": lambda config: CollectiveTransport(),
    "tcp": lambda config: SocketTransport(config.address, config.accept_timeout, config.io_timeout),
}


def resolve_strategies(preference: str | Sequence[str], known=None) -> list[str]:
    """Ordered, de-duplicated strategy chain that always ends in single-node."""
    known = set(DEFAULT_FACTORIES if known is None else known) | {SINGLE}
    names = [preference] if isinstance(preference, str) else list(preference)
    chain: list[str] = []
    for name in names:
        if name not in known:
            raise ValueError(f"unknown strategy {name!r}, expected one of {sorted(known)}")
        if name not in chain:
            chain.append(name)
    if SINGLE not in chain:
        chain.append(SINGLE)
    return chain


def run_single_node(limit: int, keep_primes: bool = False) -> AggregateResult:
    """One plain sieve over the whole range. Always available, always correct."""
    started = time.perf_counter()
    primes = simple_sieve(limit)
    count = int(primes.size)
    return AggregateResult(
        total_primes=count,
        node_count=1,
        elapsed=time.perf_counter() - started,
        per_node_counts=[count],
        base_prime_count=0,
        strategy=SINGLE,
        limit=limit,
        segments=[(Range(0, limit), count)],
        primes=primes if keep_primes else None,
    )


def execute(transport: Transport, limit: int, worker_count: int) -> AggregateResult | None:
    """
    Drive one run on an already opened transport.

    Base primes are sieved once here and only counted at aggregation; the
    workers cover (base_prime_limit, limit]. Returns None on ranks that do not
    own the final result.
    """
    started = time.perf_counter()
    base_limit = base_prime_limit(limit)
    base_primes = simple_sieve(base_limit)

    units = transport.execution_units(worker_count)
    for assignment in plan_assignments(limit, base_limit, units, base_primes):
        transport.dispatch(assignment)
    partials = transport.collect()

    if not transport.is_root:
        return None
    return aggregate(
        limit,
        base_primes,
        partials,
        strategy=transport.name,
        elapsed=time.perf_counter() - started,
    )


class Orchestrator:
    """
    Picks a distribution strategy and runs the sieve on it.

    Strategies are tried in the configured order. A strategy whose transport
    can not be opened is skipped with a warning; single-node is the last
    resort. Failures after a transport is open abort the run.
    """

    def __init__(self, config: ClusterConfig | None = None, factories: Mapping[str, TransportFactory] | None = None):
        self.config = config or ClusterConfig()
        self.factories = dict(DEFAULT_FACTORIES if factories is None else factories)

    def run(
        self,
        limit: int | None = None,
        worker_count: int | None = None,
        strategy_preference: str | Sequence[str] | None = None,
    ) -> AggregateResult | None:
        limit = self.config.limit if limit is None else limit
        worker_count = self.config.workers if worker_count is None else worker_count
        preference = self.config.strategies if strategy_preference is None else strategy_preference

        if not 0 <= limit <= U64_MAX:
            raise ValueError(f"limit must fit an unsigned 64-bit integer, got {limit}")
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")

        for name in resolve_strategies(preference, self.factories):
            if name == SINGLE:
                logger.info("Running in single-node mode")
                return run_single_node(limit, self.config.keep_primes)

            transport = self.factories[name](self.config)
            try:
                transport.open()
            except TransportUnavailable as exc:
                logger.warning("%s strategy unavailable: %s, falling back", name, exc)
                continue

            logger.info("Using %s strategy", name)
            with transport:
                return execute(transport, limit, worker_count)
        raise AssertionError("strategy chain must end in single-node mode")


def run(
    limit: int,
    worker_count: int = DEFAULT_WORKERS,
    strategy_preference: str | Sequence[str] = "threads",
    **options,
) -> AggregateResult | None:
    """Shortcut for Orchestrator(ClusterConfig(**options)).run(...)."""
    config = ClusterConfig(limit=limit, workers=worker_count, **options)
    return Orchestrator(config).run(limit, worker_count, strategy_preference)
