from __future__ import annotations

import numpy as np
import pytest

from distprimes.partition import partition
from distprimes.sieve import base_prime_limit, sieve_segment, simple_sieve


def test_simple_sieve_small_primes() -> None:
    assert simple_sieve(30).tolist() == [2, 3, 5, 7, 11, 13, 17, 19, 23, 29]


@pytest.mark.parametrize("limit, expected", [(100, 25), (1000, 168), (10_000, 1229)])
def test_simple_sieve_known_counts(limit: int, expected: int) -> None:
    # pi(100) = 25, pi(1000) = 168, pi(10000) = 1229
    assert simple_sieve(limit).size == expected


def test_simple_sieve_edge_cases() -> None:
    assert simple_sieve(0).tolist() == []
    assert simple_sieve(1).tolist() == []
    assert simple_sieve(2).tolist() == [2]
    assert simple_sieve(-5).tolist() == []


def test_simple_sieve_returns_int64() -> None:
    assert simple_sieve(50).dtype == np.int64
    assert simple_sieve(1).dtype == np.int64


def test_sieve_segment_example() -> None:
    assert sieve_segment(10, 30, [2, 3, 5, 7]).tolist() == [11, 13, 17, 19, 23, 29]


def test_sieve_segment_empty_when_low_above_high() -> None:
    assert sieve_segment(31, 30, [2, 3, 5]).tolist() == []


def test_sieve_segment_handles_zero_and_one() -> None:
    # ranges reaching down to 0/1 must not report them as primes
    assert sieve_segment(0, 30, [2, 3, 5]).tolist() == simple_sieve(30).tolist()
    assert sieve_segment(1, 1, []).tolist() == []
    assert sieve_segment(0, 1, []).tolist() == []


def test_sieve_segment_keeps_base_primes_inside_range() -> None:
    # p itself is never cleared, marking starts at p * p
    assert sieve_segment(2, 10, [2, 3]).tolist() == [2, 3, 5, 7]


def test_sieve_segment_single_value() -> None:
    assert sieve_segment(97, 97, [2, 3, 5, 7]).tolist() == [97]
    assert sieve_segment(91, 91, [2, 3, 5, 7]).tolist() == []


def test_sieve_segment_accepts_numpy_base_primes() -> None:
    base = simple_sieve(100)
    assert sieve_segment(9_900, 10_000, base).tolist() == [
        p for p in simple_sieve(10_000).tolist() if p >= 9_900
    ]


def test_sieving_is_idempotent() -> None:
    base = simple_sieve(base_prime_limit(50_000))
    first = sieve_segment(1_000, 50_000, base)
    second = sieve_segment(1_000, 50_000, base)
    assert first.tobytes() == second.tobytes()
    assert simple_sieve(50_000).tobytes() == simple_sieve(50_000).tobytes()


def test_base_prime_limit_is_ceil_sqrt() -> None:
    assert base_prime_limit(0) == 0
    assert base_prime_limit(1) == 1
    assert base_prime_limit(2) == 2
    assert base_prime_limit(100) == 10
    assert base_prime_limit(101) == 11
    assert base_prime_limit(10_000) == 100
    assert base_prime_limit(2**64 - 1) == 2**32


@pytest.mark.parametrize("limit", [0, 1, 2, 3, 4, 10, 97, 100, 1_000, 12_345])
@pytest.mark.parametrize("workers", [1, 2, 3, 7])
def test_segments_plus_base_primes_equal_full_sieve(limit: int, workers: int) -> None:
    # union of all segments with the base primes is exactly the plain sieve
    base_limit = base_prime_limit(limit)
    base = simple_sieve(base_limit)
    found = base.tolist()
    for low, high in partition(limit, base_limit, workers):
        found.extend(sieve_segment(low, high, base).tolist())
    assert sorted(found) == simple_sieve(limit).tolist()
