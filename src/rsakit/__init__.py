"""Textbook RSA in an Academic Sense.

Provides key generation from seeded random primes, block-wise stream encryption and decryption, identity
signing and verification, and the line-oriented hexadecimal key files used to exchange keys. Keys can also be
exported to PKCS#1 PEM for inspection with standard tooling.

Typical usage example:

    with RandState(42) as state:
        pk = RSAPrivKey.generate(1024, 50, state, "alice")
    c = pk.pub.encrypt(b"Hi there!")
    r = pk.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakit.errors import CiphertextError
from rsakit.errors import InvalidKeyFileError
from rsakit.errors import NoInverseError
from rsakit.keygen import generate_key_pair
from rsakit.keygen import KeyMaterial
from rsakit.numtheory import gcd
from rsakit.numtheory import is_prime
from rsakit.numtheory import make_prime
from rsakit.numtheory import mod_inverse
from rsakit.numtheory import pow_mod
from rsakit.randstate import RandState
from rsakit.rsa import decrypt_stream
from rsakit.rsa import encrypt_stream
from rsakit.rsa import identity_to_int
from rsakit.rsa import RSAPrivKey
from rsakit.rsa import RSAPubKey
from rsakit.rsa import sign
from rsakit.rsa import verify

__version__ = "0.1.0"
__all__ = [
    "CiphertextError",
    "InvalidKeyFileError",
    "NoInverseError",
    "KeyMaterial",
    "RandState",
    "RSAPrivKey",
    "RSAPubKey",
    "decrypt_stream",
    "encrypt_stream",
    "gcd",
    "generate_key_pair",
    "identity_to_int",
    "is_prime",
    "make_prime",
    "mod_inverse",
    "pow_mod",
    "sign",
    "verify",
]
