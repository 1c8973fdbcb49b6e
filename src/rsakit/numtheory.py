"""Number theory primitives behind key generation and the RSA operations.

Provides square-and-multiply modular exponentiation, the Miller-Rabin probabilistic primality test, random
prime generation, the Euclidean gcd and the extended Euclidean modular inverse. Everything works on plain
Python integers; randomness is drawn from an explicit `RandState`.

Typical usage example:

    with RandState(1337) as state:
        p = make_prime(512, 50, state)
    assert pow_mod(3, p - 1, p) == 1
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging

from rsakit.errors import NoInverseError
from rsakit.randstate import RandState

logger = logging.getLogger(__name__)


def pow_mod(base: int, exponent: int, modulus: int) -> int:
    """Computes `base**exponent % modulus` by square-and-multiply.

    Walks the exponent from the least significant bit, multiplying the running result by the current power
    of the base whenever the bit is set. Uses O(log exponent) multiplications.

    Args:
        base: The base. May be any integer, it is reduced first.
        exponent: The exponent. Must be >= 0.
        modulus: The modulus. Must be >= 1.

    Returns:
        The result in range `[0, modulus)`.

    Raises:
        ValueError: If the exponent is negative or the modulus is below 1.
    """
    if modulus < 1:
        raise ValueError("Modulus must be >= 1")
    if exponent < 0:
        raise ValueError("Exponent must be >= 0")
    out = 1 % modulus
    p = base % modulus
    while exponent > 0:
        if exponent & 1:
            out = (out * p) % modulus
        p = (p * p) % modulus
        exponent >>= 1
    return out


def is_prime(n: int, iters: int, state: RandState) -> bool:
    """Perform the Miller-Rabin primality test.

    Writes `n - 1 = 2**s * r` with `r` odd, then for `iters` random witnesses `a` in `[2, n - 2]` checks that
    `a**r` is 1 or reaches `n - 1` within `s - 1` squarings. A composite passes a single round with probability
    at most 1/4.

    Args:
        n: The candidate.
        iters: Number of rounds to perform.
        state: Source of the random witnesses.

    Returns:
        True if `n` is probably prime, False if it is certainly composite.

    Raises:
        ValueError: If `iters` is below 1.
    """
    if iters < 1:
        raise ValueError("Miller-Rabin iterations must be >= 1.")
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    r = n - 1
    s = 0
    while r % 2 == 0:
        r //= 2
        s += 1
    for _ in range(iters):
        a = state.uniform_below(n - 3) + 2
        y = pow_mod(a, r, n)
        if y == 1 or y == n - 1:
            continue
        for _ in range(s - 1):
            y = pow_mod(y, 2, n)
            if y == n - 1:
                break
            if y == 1:
                return False
        else:
            return False
    return True


def make_prime(bits: int, iters: int, state: RandState) -> int:
    """Generate a random probable prime of exactly `bits` bits.

    Candidates are drawn uniformly from `[2**(bits - 1), 2**bits - 1]` until one passes `is_prime`. There is
    no retry cap: the expected number of draws is O(bits), but the loop is only bounded by success. Callers
    needing a deadline must impose it from outside.

    Args:
        bits: Bit length of the prime. Must be >= 2.
        iters: Miller-Rabin rounds per candidate. Must be >= 1.
        state: Source of randomness.

    Returns:
        A probable prime.

    Raises:
        ValueError: If `bits` or `iters` are out of range.
    """
    if bits < 2:
        raise ValueError("A prime needs at least 2 bits")
    if iters < 1:
        raise ValueError("Miller-Rabin iterations must be >= 1.")
    low = 1 << (bits - 1)
    draws = 0
    while True:
        candidate = low + state.uniform_bits(bits - 1)
        draws += 1
        if is_prime(candidate, iters, state):
            logger.debug("Found %d-bit prime after %d draws", bits, draws)
            return candidate


def gcd(a: int, b: int) -> int:
    """Iterative Euclidean algorithm, `gcd(a, 0) == a`."""
    while b != 0:
        a, b = b, a % b
    return a


def lcm(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return a * b // gcd(a, b)


def mod_inverse(a: int, n: int) -> int:
    """Computes the inverse of `a` modulo `n` with the extended Euclidean algorithm.

    Only the coefficient of `a` is tracked, so that `a * t == gcd(a, n) (mod n)`.

    Args:
        a: The value to invert.
        n: The modulus. Must be >= 1.

    Returns:
        `i` in `[0, n)` with `a * i % n == 1`.

    Raises:
        NoInverseError: If `gcd(a, n) != 1`.
    """
    if n < 1:
        raise ValueError("Modulus must be >= 1")
    r, r_new = n, a
    t, t_new = 0, 1
    while r_new != 0:
        q = r // r_new
        r, r_new = r_new, r - q * r_new
        t, t_new = t_new, t - q * t_new
    if r > 1:
        raise NoInverseError(f"{a} has no inverse modulo {n} (gcd {r})")
    if t < 0:
        t += n
    return t


mod_pow = pow_mod
is_probably_prime = is_prime
generate_prime = make_prime
