"""RSA key pair construction.

Builds a key from two random probable primes of unequal, randomly split bit lengths. The public exponent is a
random `nbits`-bit integer coprime to the Carmichael function of the modulus, rather than the customary 65537,
and the private exponent is its inverse modulo λ(n).

Typical usage example:

    with RandState(42) as state:
        key = generate_key_pair(256, 50, state)
    pub, priv = key.public(), key.private()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import typing
import warnings

from rsakit import numtheory
from rsakit.errors import NoInverseError
from rsakit.randstate import RandState

logger = logging.getLogger(__name__)

DEFAULT_BITS: int = 256
DEFAULT_ITERS: int = 50
# Smallest size whose modulus always has at least 17 bits, leaving room for the sentinel and one data byte.
MIN_KEY_BITS: int = 18
_INSECURE_BITS: int = 1024


class KeyMaterial(typing.NamedTuple):
    """Everything produced by one key generation run.

    Attributes:
        p: First secret prime.
        q: Second secret prime.
        n: The modulus `p * q`.
        e: The public exponent.
        d: The private exponent, `e**-1 mod lam`.
        lam: λ(n), never persisted.
    """
    p: int
    q: int
    n: int
    e: int
    d: int
    lam: int

    def public(self) -> tuple[int, int]:
        return self.n, self.e

    def private(self) -> tuple[int, int]:
        return self.n, self.d


def split_bits(nbits: int, state: RandState) -> tuple[int, int]:
    """Pick the bit lengths of the two primes.

    The first length is uniform in `[nbits // 4, 3 * nbits // 4]`, the second takes the rest.

    Args:
        nbits: Target bit length of the modulus.
        state: Source of randomness.

    Returns:
        Tuple of (p bits, q bits) summing to `nbits`.
    """
    pbits = state.uniform_range(nbits // 4, 3 * nbits // 4)
    return pbits, nbits - pbits


def carmichael(p: int, q: int) -> int:
    """λ(pq) for distinct primes, `lcm(p - 1, q - 1)`."""
    return numtheory.lcm(p - 1, q - 1)


def _pick_exponent(nbits: int, lam: int, state: RandState) -> int:
    draws = 1
    e = state.uniform_bits(nbits)
    while numtheory.gcd(e, lam) != 1:
        e = state.uniform_bits(nbits)
        draws += 1
    logger.debug("Public exponent chosen after %d draws", draws)
    return e


def generate_key_pair(nbits: int, iters: int, state: RandState) -> KeyMaterial:
    """Generates an RSA key pair.

    Splits `nbits` between two primes, generates them, then draws the public exponent until it is coprime to
    λ(n) and inverts it. Should the inversion fail anyway, the whole attempt is discarded and generation
    restarts with fresh primes.

    Args:
        nbits: Bit length of the modulus. Must be >= `MIN_KEY_BITS`.
            The modulus ends up with `nbits` or `nbits - 1` bits.
        iters: Miller-Rabin rounds per prime candidate. Must be >= 1.
        state: Source of randomness.

    Returns:
        The generated key material.

    Raises:
        ValueError: If `nbits` or `iters` are out of range.
    """
    if nbits < MIN_KEY_BITS:
        raise ValueError(f"Key size must be at least {MIN_KEY_BITS} bits.")
    if iters < 1:
        raise ValueError("Miller-Rabin iterations must be >= 1.")
    if nbits < _INSECURE_BITS:
        warnings.warn(f"{nbits}-bit keys can be factored in little time. Use for study only.", RuntimeWarning)
    while True:
        pbits, qbits = split_bits(nbits, state)
        logger.debug("Splitting %d bits into %d + %d", nbits, pbits, qbits)
        p = numtheory.make_prime(pbits, iters, state)
        q = numtheory.make_prime(qbits, iters, state)
        while p == q:  # Only plausible for toy sizes.
            q = numtheory.make_prime(qbits, iters, state)
        n = p * q
        lam = carmichael(p, q)
        e = _pick_exponent(nbits, lam, state)
        try:
            d = numtheory.mod_inverse(e, lam)
        except NoInverseError:
            logger.warning("Public exponent not invertible modulo lambda(n), retrying with fresh primes.")
            continue
        logger.debug("Generated %d-bit modulus", n.bit_length())
        return KeyMaterial(p, q, n, e, d, lam)
