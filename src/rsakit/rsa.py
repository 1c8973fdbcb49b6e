"""Provides core RSA functionalities, such as encryption, decryption, signing and verification.

Facilitates "textbook" RSA: every operation is a single modular exponentiation with no randomized padding.
Streams are cut into blocks of `k - 1` bytes, where `k = (bitlength(n) - 1) // 8`, and each block is framed
behind a `0xFF` sentinel byte so leading zero bytes survive the trip through an integer. The framing is
deterministic and malleable, so it offers no semantic security; it is kept exactly as is for compatibility
with existing ciphertext files.

Typical usage example:

    with RandState(42) as state:
        pk = RSAPrivKey.generate(256, 50, state, "alice")
    c = pk.pub.encrypt(b"Hi there!")
    r = pk.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import io
import os
import pathlib
import stat
import string
import typing

from rsakit import keyfile
from rsakit import keygen
from rsakit import numtheory
from rsakit.errors import CiphertextError
from rsakit.randstate import RandState

SENTINEL: bytes = b"\xff"
# GMP's digit order for bases 37 to 62, so identities map to the same integers as in existing key files.
B62_DIGITS: str = string.digits + string.ascii_uppercase + string.ascii_lowercase
_B62_INDEX: dict[str, int] = {ch: i for i, ch in enumerate(B62_DIGITS)}


def block_size(n: int) -> int:
    """Number of bytes `k` in a framed block for modulus `n`."""
    return (n.bit_length() - 1) // 8


def encrypt_int(m: int, e: int, n: int) -> int:
    return numtheory.pow_mod(m, e, n)


def decrypt_int(c: int, d: int, n: int) -> int:
    return numtheory.pow_mod(c, d, n)


def _encrypt_blocks(infile: typing.BinaryIO, e: int, n: int, chunk: int) -> typing.Iterator[int]:
    while True:
        data = infile.read(chunk)
        if not data:
            return
        yield encrypt_int(bytes_to_integer(SENTINEL + data), e, n)


def encrypt_stream(infile: typing.BinaryIO, e: int, n: int) -> typing.Iterator[int]:
    """Encrypt a byte stream block by block.

    Reads chunks of up to `k - 1` bytes until the stream is exhausted. Blocks are independent of each other but
    are yielded in input order, which decryption relies on.

    Args:
        infile: Binary stream to read the plaintext from.
        e: The public exponent.
        n: The modulus.

    Returns:
        A lazy iterator of ciphertext integers, empty for an empty stream.

    Raises:
        ValueError: If the modulus is too small to hold the sentinel and a data byte.
    """
    k = block_size(n)
    if k < 2:
        raise ValueError(f"Modulus of {n.bit_length()} bits is too small for block encryption.")
    return _encrypt_blocks(infile, e, n, k - 1)


def decrypt_stream(ciphertexts: typing.Iterable[int], d: int, n: int) -> typing.Iterator[bytes]:
    """Decrypt a sequence of ciphertext integers into plaintext chunks.

    Args:
        ciphertexts: Ciphertext integers in the order they were produced.
        d: The private exponent.
        n: The modulus.

    Yields:
        The plaintext of each block, sentinel removed.

    Raises:
        CiphertextError: If a ciphertext is out of range or does not decrypt to a framed block.
    """
    for idx, c in enumerate(ciphertexts, start=1):
        if not 0 <= c < n:
            raise CiphertextError(f"Block {idx} is out of range for the modulus.")
        m = decrypt_int(c, d, n)
        block = integer_to_bytes(m, (m.bit_length() + 7) // 8)
        if block[:1] != SENTINEL:
            raise CiphertextError(f"Block {idx} lacks the sentinel byte. Wrong key?")
        yield block[1:]


def read_ciphertext(stream: typing.TextIO) -> typing.Iterator[int]:
    """Parse a ciphertext stream of one hexadecimal block per line.

    Blank lines are skipped; anything else that is not hexadecimal stops the stream.

    Raises:
        CiphertextError: If a line is not valid hexadecimal, or the stream cannot be decoded as text.
    """
    lineno = 0
    try:
        for lineno, line in enumerate(stream, start=1):
            token = line.strip()
            if not token:
                continue
            try:
                yield keyfile.parse_hex(token)
            except ValueError as exc:
                raise CiphertextError(f"Line {lineno}: {exc}") from exc
    except UnicodeDecodeError as exc:
        # Text streams decode ahead in chunks, so the offending line is only approximate.
        raise CiphertextError(f"Undecodable text after line {lineno}: {exc.reason}") from exc


def encrypt_file(infile: typing.BinaryIO, outfile: typing.TextIO, e: int, n: int) -> int:
    """Encrypt `infile` and write one lowercase hexadecimal line per block to `outfile`.

    Returns:
        The number of blocks written.
    """
    count = 0
    for c in encrypt_stream(infile, e, n):
        outfile.write(keyfile.format_hex(c) + "\n")
        count += 1
    return count


def decrypt_file(infile: typing.TextIO, outfile: typing.BinaryIO, d: int, n: int) -> int:
    """Decrypt a hexadecimal ciphertext stream into `outfile`.

    Returns:
        The number of plaintext bytes written.
    """
    written = 0
    for chunk in decrypt_stream(read_ciphertext(infile), d, n):
        outfile.write(chunk)
        written += len(chunk)
    return written


def sign(m: int, d: int, n: int) -> int:
    """Sign the integer message `m` with the private exponent.

    Raises:
        ValueError: If `m` is outside `[0, n)`, as such a signature could never verify.
    """
    if not 0 <= m < n:
        raise ValueError("Message representative must be in range [0, mod-1]")
    return numtheory.pow_mod(m, d, n)


def verify(m: int, s: int, e: int, n: int) -> bool:
    """Check that `s` is a signature of `m`. Out-of-range signatures simply fail."""
    if not 0 <= s < n:
        return False
    return numtheory.pow_mod(s, e, n) == m


def identity_to_int(identity: str) -> int:
    """Reads an identity as a base-62 numeral.

    The mapping is one-way; the integer only serves as the signed payload.

    Args:
        identity: The identity, at most `keyfile.MAX_IDENTITY_LENGTH` characters of `B62_DIGITS`.

    Returns:
        The integer value.

    Raises:
        ValueError: If the identity is empty, too long or holds a non base-62 character.
    """
    keyfile.check_identity(identity)
    value = 0
    for ch in identity:
        digit = _B62_INDEX.get(ch)
        if digit is None:
            raise ValueError(f"Identity character {ch!r} is not a base-62 digit.")
        value = value * 62 + digit
    return value


class RSAKey:
    """The overall RSA key class implementation.

    Holds what both halves of a key pair share.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
        bsize: Framed block size in bytes.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo
        self.bsize = block_size(mod)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt/Sign/Verify).

        Args:
            message: The int-marshalled message.

        Returns:
            `message**expo mod mod`.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return numtheory.pow_mod(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """RSA Public Key, together with the signed identity of its owner.

    Attributes:
        mod: The modulus of the keypair.
        expo: The public exponent.
        sig: Signature over the identity, if known.
        identity: The owner's identity, if known.
    """

    def __init__(self, mod: int, expo: int, sig: int | None = None, identity: str | None = None) -> None:
        super().__init__(mod, expo)
        self.sig = sig
        self.identity = identity

    def encrypt(self, message: bytes) -> list[int]:
        """Encrypt a byte string into a list of ciphertext blocks."""
        return list(encrypt_stream(io.BytesIO(message), self.expo, self.mod))

    def encrypt_file(self, infile: typing.BinaryIO, outfile: typing.TextIO) -> int:
        return encrypt_file(infile, outfile, self.expo, self.mod)

    def verify(self, message: int, signature: int) -> bool:
        return verify(message, signature, self.expo, self.mod)

    def verify_identity(self) -> bool:
        """Verify the stored signature against the stored identity.

        Returns:
            True if the signature matches, False if it does not, or if either part is absent or unusable.
        """
        if self.sig is None or self.identity is None:
            return False
        try:
            target = identity_to_int(self.identity)
        except ValueError:
            return False
        return self.verify(target, self.sig)

    def export(self, file: pathlib.Path) -> None:
        """Export the public key artifact to file.

        Raises:
            ValueError: If the signature or identity are missing.
        """
        if self.sig is None or self.identity is None:
            raise ValueError("A public key artifact needs a signature and identity.")
        with open(file, "w", encoding="utf-8", newline="\n") as f:
            keyfile.write_pub(f, self.mod, self.expo, self.sig, self.identity)

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Import a public key artifact from file.

        Raises:
            InvalidKeyFileError: If the artifact is malformed.
        """
        with open(file, "r", encoding="utf-8") as f:
            n, e, s, identity = keyfile.read_pub(f)
        return cls(n, e, s, identity)


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    Freshly generated keys also carry their public half and primes, imported ones only modulus and exponent.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The public key, if known.
        p: Private Prime 1, if known.
        q: Private Prime 2, if known.
    """

    def __init__(self,
                 mod: int,
                 priv_exp: int,
                 pub: RSAPubKey | None = None,
                 p: int | None = None,
                 q: int | None = None) -> None:
        super().__init__(mod, priv_exp)
        self.pub = pub
        self.p = p
        self.q = q

    def decrypt(self, ciphertexts: typing.Iterable[int]) -> bytes:
        """Decrypt ciphertext blocks back into the original byte string."""
        return b"".join(decrypt_stream(ciphertexts, self.expo, self.mod))

    def decrypt_file(self, infile: typing.TextIO, outfile: typing.BinaryIO) -> int:
        return decrypt_file(infile, outfile, self.expo, self.mod)

    def sign(self, message: int) -> int:
        return self.c_rsa(message)

    def sign_identity(self, identity: str) -> int:
        return self.sign(identity_to_int(identity))

    def export(self, file: pathlib.Path) -> None:
        """Export the private key artifact, readable and writable by the owner only."""
        fd = os.open(file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # The creation mode does not apply to a file that already existed.
        os.chmod(file, stat.S_IRUSR | stat.S_IWUSR)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            keyfile.write_priv(f, self.mod, self.expo)

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPrivKey":
        """Import a private key artifact from file.

        Raises:
            InvalidKeyFileError: If the artifact is malformed.
        """
        with open(file, "r", encoding="utf-8") as f:
            n, d = keyfile.read_priv(f)
        return cls(n, d)

    @classmethod
    def from_material(cls, key: keygen.KeyMaterial, identity: str) -> "RSAPrivKey":
        """Wrap generated key material, signing `identity` into the public half.

        Raises:
            ValueError: If the identity is not base-62 or its value does not fit below the modulus.
        """
        s = sign(identity_to_int(identity), key.d, key.n)
        pub = RSAPubKey(key.n, key.e, s, identity)
        return cls(key.n, key.d, pub, key.p, key.q)

    @classmethod
    def generate(cls, nbits: int, iters: int, state: RandState, identity: str) -> "RSAPrivKey":
        """Generates an RSA Private Key, and it's respective Public Key.

        Args:
            nbits: The size of the modulus.
            iters: Miller-Rabin rounds per prime candidate.
            state: Source of randomness.
            identity: The owner's identity to sign.

        Returns:
            A new generated RSA Private Key.
        """
        return cls.from_material(keygen.generate_key_pair(nbits, iters, state), identity)


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to an unsigned big-endian integer."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int) -> bytes:
    """Converts an integer to a fixed-length big-endian byte string."""
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)
