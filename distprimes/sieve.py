import math

import numpy as np


def base_prime_limit(limit: int) -> int:
    """Return ceil(sqrt(limit)), the bound the base primes are taken up to."""
    if limit < 2:
        return limit
    r = math.isqrt(limit)
    return r if r * r == limit else r + 1


def simple_sieve(limit: int) -> np.ndarray:
    """Classic sieve up to 'limit' (inclusive), returns primes as int64 numpy array."""
    if limit < 2:
        return np.array([], dtype=np.int64)
    is_prime = np.ones(limit + 1, dtype=bool)
    is_prime[:2] = False
    r = math.isqrt(limit)
    for p in range(2, r + 1):
        if is_prime[p]:
            is_prime[p * p : limit + 1 : p] = False
    return np.flatnonzero(is_prime).astype(np.int64)


def sieve_segment(low: int, high: int, base_primes) -> np.ndarray:
    """Return primes in the segment [low, high] using the provided base primes.

    The base primes must cover sqrt(high). Index i of the local mask stands for
    the value low + i; nothing outside the mask is touched, so concurrent calls
    on disjoint ranges need no synchronization.
    """
    low, high = int(low), int(high)
    if low > high:
        return np.array([], dtype=np.int64)

    size = high - low + 1
    is_prime = np.ones(size, dtype=bool)

    # 0 and 1 only matter when the segment reaches down to them
    if low == 0:
        is_prime[0] = False
    if low <= 1 <= high:
        is_prime[1 - low] = False

    for p in base_primes:
        p = int(p)
        p2 = p * p
        if p2 > high:
            continue
        # first multiple of p within [low, high]; below p*p smaller primes already cleared it
        if low <= p2:
            start = p2
        else:
            start = low + (p - low % p) % p
        is_prime[start - low :: p] = False

    seg_primes = low + np.flatnonzero(is_prime).astype(np.int64)
    return seg_primes[seg_primes > 1]
