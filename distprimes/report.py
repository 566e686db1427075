import math
from dataclasses import dataclass

from distprimes.results import AggregateResult

RULE = "═" * 59
THIN_RULE = "─" * 59


@dataclass(frozen=True)
class PrimeStatistics:
    count: int
    largest: int | None
    density: float
    theoretical_count: int


def prime_statistics(result: AggregateResult) -> PrimeStatistics:
    """Count, density and the n/ln(n) estimate; largest prime only when the primes were kept."""
    limit = result.limit
    largest = None
    if result.primes is not None and result.primes.size:
        largest = int(result.primes[-1])
    return PrimeStatistics(
        count=result.total_primes,
        largest=largest,
        density=result.total_primes / limit if limit > 0 else 0.0,
        theoretical_count=int(limit / math.log(limit)) if limit > 1 else 0,
    )


def format_csv(result: AggregateResult) -> str:
    # limit,nodes,time_ms,total
    return f"{result.limit},{result.node_count},{result.time_ms:.3f},{result.total_primes}"


def _node_label(result: AggregateResult, node: int) -> str:
    if result.strategy == "tcp":
        return "Master" if node == 0 else "Worker"
    if result.strategy == "mpi":
        return "Rank"
    return "Worker"


def format_report(result: AggregateResult, show: int = 0) -> str:
    stats = prime_statistics(result)
    lines = [
        RULE,
        "           DISTRIBUTED PRIME CALCULATION RESULTS",
        RULE,
        "Configuration:",
        f"  Limit: {result.limit:,}",
        f"  Strategy: {result.strategy}",
        f"  Nodes: {result.node_count}",
        THIN_RULE,
        "Results:",
        f"  Total primes found:  {stats.count:>12,}",
        f"  Base primes:         {result.base_prime_count:>12,}",
    ]
    if stats.largest is not None:
        lines.append(f"  Largest prime:       {stats.largest:>12,}")
    lines += [
        f"  Prime density:       {stats.density:>12.6f}",
        f"  Theoretical count:   {stats.theoretical_count:>12,} (π(n) ≈ n/ln(n))",
        f"  Execution time:      {result.time_ms:>12.3f} ms",
        THIN_RULE,
        "Per-node breakdown:",
    ]
    for node, (segment, count) in enumerate(result.segments):
        if segment.empty:
            span = "(empty)"
        else:
            span = f"[{segment.low:>12}, {segment.high:>12}]"
        lines.append(f"  {_node_label(result, node)} {node}: {span} -> {count} primes")
    lines.append(RULE)

    if show and result.primes is not None:
        lines.append(f"The first {show} primes are: {result.primes[:show].tolist()}")
        lines.append(f"The last {show} primes are: {result.primes[-show:].tolist()}")
    return "\n".join(lines)
