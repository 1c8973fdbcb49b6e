"""Seeded random state shared by every probabilistic operation.

A single `RandState` is created from a seed and handed to prime generation and key generation explicitly,
instead of living in a module global. The generator is Mersenne Twister, so a seed always reproduces the
same keys. It is NOT a cryptographically secure source, which is acceptable only for this textbook setting.

Typical usage example:

    with RandState(42) as state:
        p = numtheory.make_prime(128, 50, state)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import random

_SEED_CAP: int = 2**64


class RandState:
    """Handle around a seeded Mersenne Twister generator.

    Attributes:
        seed: The seed the generator was initialized with.
    """

    def __init__(self, seed: int) -> None:
        """Initialize the random state.

        Args:
            seed: Unsigned 64-bit seed.

        Raises:
            ValueError: If the seed is negative or does not fit in 64 bits.
        """
        if not 0 <= seed < _SEED_CAP:
            raise ValueError("Seed must be in range [0, 2**64 - 1]")
        self.seed = seed
        self._gen: random.Random | None = random.Random(seed)

    def __enter__(self) -> "RandState":
        return self

    def __exit__(self, *exc) -> None:
        self.clear()

    @property
    def active(self) -> bool:
        return self._gen is not None

    def _generator(self) -> random.Random:
        if self._gen is None:
            raise RuntimeError("Random state used after clear().")
        return self._gen

    def uniform_bits(self, k: int) -> int:
        """Draw uniformly from `[0, 2**k)`.

        Args:
            k: Number of random bits. Must be >= 0.

        Returns:
            The random integer.
        """
        if k < 0:
            raise ValueError("Bit count must be >= 0")
        gen = self._generator()
        if k == 0:
            return 0
        return gen.getrandbits(k)

    def uniform_below(self, m: int) -> int:
        """Draw uniformly from `[0, m)`.

        Args:
            m: Exclusive upper bound. Must be >= 1.

        Returns:
            The random integer.
        """
        if m < 1:
            raise ValueError("Upper bound must be >= 1")
        return self._generator().randrange(m)

    def uniform_range(self, lo: int, hi: int) -> int:
        """Draw uniformly from `[lo, hi]`, both ends inclusive."""
        if hi < lo:
            raise ValueError("Empty range")
        return lo + self.uniform_below(hi - lo + 1)

    def clear(self) -> None:
        """Release the generator. Further draws raise RuntimeError."""
        self._gen = None
