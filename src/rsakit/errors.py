"""Exception types raised by rsakit.

Everything subclasses a builtin so callers that only care about the broad category (`OSError` for unreadable
keys, `ValueError` for bad data) keep working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class InvalidKeyFileError(OSError):
    """A key artifact is truncated, missing a line or holds a malformed value."""


class NoInverseError(ValueError):
    """The operands of a modular inversion share a factor, so no inverse exists."""


class CiphertextError(ValueError):
    """A ciphertext stream holds a token that cannot be decrypted into a framed block."""
