from __future__ import annotations

import logging
import sys
import threading

import pytest

from distprimes.config import ClusterConfig
from distprimes.errors import TransportError, TransportUnavailable
from distprimes.orchestrator import Orchestrator, resolve_strategies, run, run_single_node
from distprimes.sieve import simple_sieve
from distprimes.tcp import SocketTransport, run_worker
from distprimes.transport import InProcessTransport, Transport


class _Unavailable(Transport):
    name = "mpi"

    def open(self) -> None:
        raise TransportUnavailable("no MPI runtime")


class _Broken(Transport):
    name = "tcp"

    def execution_units(self, requested: int) -> int:
        raise TransportError("accept failed")


def test_resolve_strategies_always_ends_in_single() -> None:
    assert resolve_strategies("threads") == ["threads", "single"]
    assert resolve_strategies(["mpi", "tcp", "mpi"]) == ["mpi", "tcp", "single"]
    assert resolve_strategies(["single", "threads"]) == ["single", "threads"]
    with pytest.raises(ValueError):
        resolve_strategies("carrier-pigeon")


def test_run_single_node() -> None:
    result = run_single_node(1000, keep_primes=True)
    assert result.total_primes == 168
    assert result.node_count == 1
    assert result.base_prime_count == 0
    assert result.per_node_counts == [168]
    assert result.strategy == "single"
    assert result.primes.tolist() == simple_sieve(1000).tolist()


@pytest.mark.parametrize("limit, expected", [(0, 0), (1, 0), (2, 1), (3, 2), (100, 25), (1000, 168)])
def test_run_with_threads(limit: int, expected: int) -> None:
    result = run(limit, worker_count=3, strategy_preference="threads", keep_primes=True)
    assert result.total_primes == expected
    assert result.strategy == "threads"
    assert result.primes.tolist() == simple_sieve(limit).tolist()


def test_limit_two_yields_two() -> None:
    result = run(2, worker_count=4, strategy_preference="threads", keep_primes=True)
    assert result.primes.tolist() == [2]


def test_thread_counts_agree() -> None:
    expected = simple_sieve(200_000).tolist()
    for workers in (1, 2, 4, 8):
        result = run(200_000, worker_count=workers, keep_primes=True)
        assert result.total_primes == len(expected)
        assert result.primes.tolist() == expected


def test_unavailable_strategy_falls_back_to_single(caplog: pytest.LogCaptureFixture) -> None:
    orchestrator = Orchestrator(ClusterConfig(limit=1000), factories={"mpi": lambda config: _Unavailable()})
    with caplog.at_level(logging.WARNING, logger="distprimes.orchestrator"):
        result = orchestrator.run(strategy_preference="mpi")
    assert result.strategy == "single"
    assert result.total_primes == 168
    assert "mpi strategy unavailable" in caplog.text


def test_fallback_chain_order() -> None:
    factories = {
        "mpi": lambda config: _Unavailable(),
        "threads": lambda config: InProcessTransport(),
    }
    result = Orchestrator(factories=factories).run(10_000, 2, ["mpi", "threads"])
    assert result.strategy == "threads"
    assert result.total_primes == 1229


def test_mpi_without_runtime_degrades(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "mpi4py", None)
    result = Orchestrator().run(1000, 2, "mpi")
    assert result.strategy == "single"
    assert result.total_primes == 168


def test_failure_after_open_aborts_the_run() -> None:
    orchestrator = Orchestrator(factories={"tcp": lambda config: _Broken()})
    with pytest.raises(TransportError):
        orchestrator.run(1000, 2, "tcp")


def test_tcp_strategy_end_to_end() -> None:
    # bind first so the workers know the port, then hand the open transport to the orchestrator
    transport = SocketTransport(("127.0.0.1", 0), accept_timeout=10, io_timeout=10)
    transport.open()
    workers = [threading.Thread(target=run_worker, args=(transport.address, 10)) for _ in range(2)]
    for t in workers:
        t.start()
    result = Orchestrator(factories={"tcp": lambda config: transport}).run(100_000, 2, "tcp")
    for t in workers:
        t.join()
    assert result.strategy == "tcp"
    assert result.node_count == 3
    assert result.total_primes == 9592


def test_run_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        Orchestrator().run(-1, 1, "threads")
    with pytest.raises(ValueError):
        Orchestrator().run(100, 0, "threads")
