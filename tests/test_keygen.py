# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging

import pytest
import sympy

from rsakit import keygen
from rsakit import numtheory
from rsakit.errors import NoInverseError
from rsakit.randstate import RandState

pytestmark = pytest.mark.filterwarnings("ignore:.*can be factored:RuntimeWarning")

test_sizes = [
    18,
    64,
    256,
    512,
    pytest.param(1024, marks=pytest.mark.slow),
    pytest.param(2048, marks=pytest.mark.extreme),
]


def assert_key_valid(key: keygen.KeyMaterial, nbits: int) -> None:
    """Multi-use key invariant assertion suite."""
    assert key.p != key.q
    assert sympy.isprime(key.p)
    assert sympy.isprime(key.q)
    assert key.p.bit_length() + key.q.bit_length() == nbits
    assert nbits // 4 <= key.p.bit_length() <= 3 * nbits // 4
    assert key.n == key.p * key.q
    assert key.n.bit_length() in (nbits - 1, nbits)
    assert key.lam == (key.p - 1) * (key.q - 1) // numtheory.gcd(key.p - 1, key.q - 1)
    assert numtheory.gcd(key.e, key.lam) == 1
    assert key.d * key.e % key.lam == 1


@pytest.mark.parametrize("nbits", [18, 100, 256, 4096])
def test_split_bits_bounds(nbits):
    with RandState(9) as state:
        for _ in range(200):
            pbits, qbits = keygen.split_bits(nbits, state)
            assert pbits + qbits == nbits
            assert nbits // 4 <= pbits <= 3 * nbits // 4


def test_split_bits_reaches_both_ends():
    with RandState(9) as state:
        seen = {keygen.split_bits(20, state)[0] for _ in range(500)}
    assert seen == set(range(5, 16))


@pytest.mark.parametrize("p,q,expected", [(5, 7, 12), (11, 13, 60), (3, 5, 4), (2**61 - 1, 2**31 - 1, None)])
def test_carmichael(p, q, expected):
    if expected is None:
        expected = (p - 1) * (q - 1) // numtheory.gcd(p - 1, q - 1)
    assert keygen.carmichael(p, q) == expected


@pytest.mark.parametrize("nbits", test_sizes)
def test_generate_key_pair_invariants(nbits):
    with RandState(1234) as state:
        key = keygen.generate_key_pair(nbits, 25, state)
    assert_key_valid(key, nbits)


def test_generate_key_pair_reference_scenario():
    with RandState(42) as state:
        key = keygen.generate_key_pair(256, 50, state)
    assert 255 <= key.n.bit_length() <= 258
    assert key.p != key.q
    assert_key_valid(key, 256)


def test_generate_key_pair_roundcryption():
    with RandState(7) as state:
        key = keygen.generate_key_pair(256, 50, state)
    message = 17092025232642
    ciphertext = numtheory.pow_mod(message, key.e, key.n)
    assert numtheory.pow_mod(ciphertext, key.d, key.n) == message


def test_generate_key_pair_deterministic():
    with RandState(99) as a, RandState(99) as b:
        assert keygen.generate_key_pair(128, 25, a) == keygen.generate_key_pair(128, 25, b)


def test_key_material_views():
    key = keygen.KeyMaterial(5, 7, 35, 5, 5, 12)
    assert key.public() == (35, 5)
    assert key.private() == (35, 5)


@pytest.mark.parametrize("nbits,iters", [(17, 50), (0, 50), (-256, 50), (256, 0), (256, -1)])
def test_generate_key_pair_validates(nbits, iters, state):
    with pytest.raises(ValueError):
        keygen.generate_key_pair(nbits, iters, state)


def test_generate_key_pair_warns_small(state):
    with pytest.warns(RuntimeWarning):
        keygen.generate_key_pair(64, 10, state)


def test_generate_key_pair_redraws_equal_primes(mocker, state):
    mocker.patch("rsakit.numtheory.make_prime", side_effect=[11, 11, 13])
    key = keygen.generate_key_pair(18, 10, state)
    assert (key.p, key.q) == (11, 13)
    assert numtheory.make_prime.call_count == 3
    assert key.d * key.e % key.lam == 1


def test_generate_key_pair_retries_on_no_inverse(mocker, state, caplog):
    real_inverse = numtheory.mod_inverse
    failures = [NoInverseError("forced")]

    def flaky_inverse(a, n):
        if failures:
            raise failures.pop()
        return real_inverse(a, n)

    mocker.patch("rsakit.numtheory.mod_inverse", side_effect=flaky_inverse)
    spy = mocker.spy(numtheory, "make_prime")
    with caplog.at_level(logging.WARNING, logger="rsakit.keygen"):
        key = keygen.generate_key_pair(64, 10, state)
    assert numtheory.mod_inverse.call_count == 2
    assert spy.call_count == 4
    assert "retrying with fresh primes" in caplog.text
    assert_key_valid(key, 64)
