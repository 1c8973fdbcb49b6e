"""Reading and writing of the textual key artifacts.

A public key artifact holds the modulus, the public exponent and the signature over the owner's identity as
lowercase hexadecimal lines, followed by the identity itself. A private key artifact holds the modulus and the
private exponent. Every line is newline-terminated:

    public:  <n hex>\\n<e hex>\\n<s hex>\\n<identity>\\n
    private: <n hex>\\n<d hex>\\n

Parsing is strict: hexadecimal tokens take no sign, prefix or separator, and a missing line is an error
rather than a zero.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import re
import typing

from rsakit.errors import InvalidKeyFileError

MAX_IDENTITY_LENGTH: int = 255

_HEX_TOKEN = re.compile(r"[0-9a-fA-F]+")
_IDENTITY_TOKEN = re.compile(r"\S+")


def format_hex(value: int) -> str:
    """Render an unsigned integer as lowercase hexadecimal without prefix."""
    if value < 0:
        raise ValueError("Only unsigned values can be written.")
    return format(value, "x")


def parse_hex(token: str) -> int:
    """Parse an unsigned hexadecimal token.

    Args:
        token: The token, without surrounding whitespace.

    Returns:
        The parsed integer.

    Raises:
        ValueError: If the token is empty or holds anything but hex digits.
    """
    if not _HEX_TOKEN.fullmatch(token):
        raise ValueError(f"Not a hexadecimal token: {token!r}")
    return int(token, 16)


def check_identity(identity: str) -> str:
    """Validate an identity for storage in a public key artifact.

    Over-long identities are rejected, never truncated.

    Raises:
        ValueError: If the identity is empty, holds whitespace or exceeds `MAX_IDENTITY_LENGTH`.
    """
    if not _IDENTITY_TOKEN.fullmatch(identity):
        raise ValueError("Identity must be a non-empty token without whitespace.")
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise ValueError(f"Identity longer than {MAX_IDENTITY_LENGTH} characters.")
    return identity


def _read_line(stream: typing.TextIO, what: str) -> str:
    try:
        line = stream.readline()
    except UnicodeDecodeError as exc:
        raise InvalidKeyFileError(f"Key file is not valid text near the {what} line: {exc.reason}") from exc
    if not line:
        raise InvalidKeyFileError(f"Key file ends before the {what} line.")
    return line.rstrip("\r\n")


def _read_hex(stream: typing.TextIO, what: str) -> int:
    line = _read_line(stream, what)
    try:
        return parse_hex(line)
    except ValueError as exc:
        raise InvalidKeyFileError(f"Malformed {what} in key file: {exc}") from exc


def write_pub(stream: typing.TextIO, n: int, e: int, s: int, identity: str) -> None:
    """Write a public key artifact.

    Args:
        stream: Text stream to write to.
        n: The modulus.
        e: The public exponent.
        s: The signature over the identity.
        identity: The owner's identity.
    """
    check_identity(identity)
    stream.write(f"{format_hex(n)}\n{format_hex(e)}\n{format_hex(s)}\n{identity}\n")


def read_pub(stream: typing.TextIO) -> tuple[int, int, int, str]:
    """Read a public key artifact.

    Args:
        stream: Text stream to read from.

    Returns:
        Tuple of (modulus, public exponent, signature, identity).

    Raises:
        InvalidKeyFileError: If a line is missing or malformed.
    """
    n = _read_hex(stream, "modulus")
    e = _read_hex(stream, "public exponent")
    s = _read_hex(stream, "signature")
    identity = _read_line(stream, "identity")
    try:
        check_identity(identity)
    except ValueError as exc:
        raise InvalidKeyFileError(f"Malformed identity in key file: {exc}") from exc
    return n, e, s, identity


def write_priv(stream: typing.TextIO, n: int, d: int) -> None:
    """Write a private key artifact of modulus and private exponent."""
    stream.write(f"{format_hex(n)}\n{format_hex(d)}\n")


def read_priv(stream: typing.TextIO) -> tuple[int, int]:
    """Read a private key artifact.

    Raises:
        InvalidKeyFileError: If a line is missing or malformed.
    """
    n = _read_hex(stream, "modulus")
    d = _read_hex(stream, "private exponent")
    return n, d
