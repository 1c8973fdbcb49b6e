"""The Command Line Interface for the utility.

Three subcommands mirror the classic trio of RSA programs: `keygen` writes a public/private key file pair,
`encrypt` turns a byte stream into hexadecimal ciphertext lines after checking the public key's identity
signature, and `decrypt` reverses it. Streams default to stdin/stdout.

Typical usage example:

    rsakit keygen -b 1024 -s 42
    rsakit encrypt -i notes.txt -o notes.enc
    python -m rsakit decrypt -i notes.enc
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import contextlib
import getpass
import logging
import pathlib
import sys
import time
import typing

import rsakit
from rsakit import keygen
from rsakit import pem
from rsakit.rsa import RSAPrivKey
from rsakit.rsa import RSAPubKey

logger = logging.getLogger("rsakit")


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "keygen":
        HelpData("Generate an RSA public/private key pair."),
    "encrypt":
        HelpData("Encrypt data with a public key."),
    "decrypt":
        HelpData("Decrypt data with a private key."),
    "bits":
        HelpData(
            description="Minimum bits needed for public modulus n.",
            format=int,
            default=keygen.DEFAULT_BITS,
        ),
    "iters":
        HelpData(
            description="Miller-Rabin iterations for testing primes.",
            format=int,
            default=keygen.DEFAULT_ITERS,
        ),
    "public_key":
        HelpData(
            description="Public key file.",
            format=pathlib.Path,
            default=pathlib.Path("rsa.pub"),
        ),
    "private_key":
        HelpData(
            description="Private key file.",
            format=pathlib.Path,
            default=pathlib.Path("rsa.priv"),
        ),
    "seed":
        HelpData(
            description="Random seed for testing (default: current time).",
            format=int,
        ),
    "identity":
        HelpData(description="Identity to sign into the public key, base-62 digits only (default: login name)."),
    "pem":
        HelpData(
            description="Directory to additionally write PKCS#1 PEM copies of the key pair to.",
            format=pathlib.Path,
        ),
    "infile":
        HelpData(
            description="Input file (default: stdin).",
            format=pathlib.Path,
        ),
    "outfile":
        HelpData(
            description="Output file (default: stdout).",
            format=pathlib.Path,
        ),
}


def _add(parser: argparse.ArgumentParser, name: str, *flags: str) -> None:
    data = help_dict[name]
    parser.add_argument(*flags, dest=name, type=data.format, default=data.default, help=data.description)


streams = argparse.ArgumentParser(add_help=False)
_add(streams, "infile", "--infile", "-i")
_add(streams, "outfile", "--outfile", "-o")
corep = argparse.ArgumentParser(prog="rsakit")
corep.add_argument("--version", action="version", version=f"%(prog)s {rsakit.__version__}")
corep.add_argument("--verbose", "-v", action="store_true", help="Display verbose program output.")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands", required=True)

keygen_p = commands.add_parser("keygen", help=help_dict["keygen"].description)
_add(keygen_p, "bits", "--bits", "-b")
_add(keygen_p, "iters", "--iters", "-i")
_add(keygen_p, "public_key", "--public-key", "-n")
_add(keygen_p, "private_key", "--private-key", "-d")
_add(keygen_p, "seed", "--seed", "-s")
_add(keygen_p, "identity", "--identity", "-u")
_add(keygen_p, "pem", "--pem")

encrypt_p = commands.add_parser("encrypt", parents=[streams], help=help_dict["encrypt"].description)
_add(encrypt_p, "public_key", "--public-key", "-n")
decrypt_p = commands.add_parser("decrypt", parents=[streams], help=help_dict["decrypt"].description)
_add(decrypt_p, "private_key", "--private-key", "-n")


def vprint(label: str, value: int) -> None:
    """Print a named value with its bit length to stderr."""
    print(f"{label} ({value.bit_length()} bits) = {value}", file=sys.stderr)


def open_input(path: pathlib.Path | None, binary: bool) -> typing.ContextManager:
    if path is None:
        return contextlib.nullcontext(sys.stdin.buffer if binary else sys.stdin)
    if binary:
        return open(path, "rb")
    return open(path, "r", encoding="ascii")


def open_output(path: pathlib.Path | None, binary: bool) -> typing.ContextManager:
    if path is None:
        return contextlib.nullcontext(sys.stdout.buffer if binary else sys.stdout)
    if binary:
        return open(path, "wb")
    return open(path, "w", encoding="ascii", newline="\n")


def run_keygen(args: argparse.Namespace) -> None:
    seed = args.seed if args.seed is not None else int(time.time())
    identity = args.identity if args.identity is not None else getpass.getuser()
    rsakit.identity_to_int(identity)  # Reject before spending time on primes.
    logger.debug("Seeding random state with %d", seed)
    with rsakit.RandState(seed) as state:
        key = keygen.generate_key_pair(args.bits, args.iters, state)
    rpk = RSAPrivKey.from_material(key, identity)
    rpk.pub.export(args.public_key)
    rpk.export(args.private_key)
    if args.pem is not None:
        args.pem.mkdir(parents=True, exist_ok=True)
        pem.export_public(args.pem / f"{args.public_key.name}.pem", key.n, key.e)
        pem.export_private(args.pem / f"{args.private_key.name}.pem", key)
    if args.verbose:
        print(f"user = {identity}", file=sys.stderr)
        vprint("s", rpk.pub.sig)
        vprint("p", key.p)
        vprint("q", key.q)
        vprint("n", key.n)
        vprint("e", key.e)
        vprint("d", key.d)


def run_encrypt(args: argparse.Namespace) -> None:
    rpu = RSAPubKey.import_key(args.public_key)
    if args.verbose:
        print(f"user = {rpu.identity}", file=sys.stderr)
        vprint("s", rpu.sig)
        vprint("n", rpu.mod)
        vprint("e", rpu.expo)
    if not rpu.verify_identity():
        print("Error: Unverified signature.", file=sys.stderr)
        sys.exit(1)
    with open_input(args.infile, binary=True) as fin, open_output(args.outfile, binary=False) as fout:
        blocks = rpu.encrypt_file(fin, fout)
    logger.debug("Wrote %d ciphertext blocks", blocks)


def run_decrypt(args: argparse.Namespace) -> None:
    rpk = RSAPrivKey.import_key(args.private_key)
    if args.verbose:
        vprint("n", rpk.mod)
        vprint("d", rpk.expo)
    with open_input(args.infile, binary=False) as fin, open_output(args.outfile, binary=True) as fout:
        written = rpk.decrypt_file(fin, fout)
    logger.debug("Wrote %d plaintext bytes", written)


def main(argv: list[str] | None = None) -> None:
    """Command line entry point. Exits with status 1 on any reported error."""
    args = corep.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    logging.captureWarnings(True)
    try:
        match args.subcommand:
            case "keygen":
                run_keygen(args)
            case "encrypt":
                run_encrypt(args)
            case "decrypt":
                run_decrypt(args)
    except rsakit.InvalidKeyFileError as exc:
        print(f"Error: Invalid key file. {exc}", file=sys.stderr)
        sys.exit(1)
    except rsakit.CiphertextError as exc:
        print(f"Error: Malformed ciphertext. {exc}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
