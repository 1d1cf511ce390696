#!/usr/bin/env python3
"""
otpvault CLI - Command-line authenticator.

Usage:
    otpvault [--store PATH] add <label> [--issuer ISSUER] [--secret BASE32]
             [--algorithm ALG] [--digits N] [--period SECONDS | --counter N]
    otpvault [--store PATH] list
    otpvault [--store PATH] code <account>
    otpvault [--store PATH] remove <account>

Examples:
    # Add a TOTP account from the secret a service shows you
    otpvault add alice@example.com --issuer GitHub --secret JBSWY3DPEHPK3PXP

    # Add an HOTP account starting at counter 0
    otpvault add bob --counter 0

    # Show the current code (advances HOTP counters)
    otpvault code alice@example.com

The store defaults to $OTPVAULT_STORE, or ~/.otpvault.json.
"""

import argparse
import logging
import os
import sys
import time
from typing import Optional

from otpvault import __version__
from otpvault.account import Account
from otpvault.algorithm import Algorithm, OTPType
from otpvault.exceptions import OTPVaultError
from otpvault.factor import DEFAULT_PERIOD, Counter, Timer
from otpvault.generator import DEFAULT_DIGITS, Generator
from otpvault.store import FileSecretStore, SecretStore

DEFAULT_STORE = "~/.otpvault.json"
STORE_ENV = "OTPVAULT_STORE"


def open_store(args: argparse.Namespace) -> SecretStore:
    """Store selected by --store, the environment, or the default path."""
    path = args.store or os.environ.get(STORE_ENV) or DEFAULT_STORE
    return FileSecretStore(path)


def find_account(store: SecretStore, ref: str) -> Account:
    """
    Resolve an account by id, id prefix or label.

    Raises:
        OTPVaultError: If nothing or more than one account matches
    """
    accounts = Account.load_all(store)
    matches = [a for a in accounts if str(a.id) == ref]
    if not matches:
        matches = [a for a in accounts if a.label == ref]
    if not matches:
        matches = [a for a in accounts if str(a.id).startswith(ref)]
    if not matches:
        raise OTPVaultError(f"No account matches {ref!r}", code="NOT_FOUND")
    if len(matches) > 1:
        raise OTPVaultError(f"{ref!r} matches {len(matches)} accounts, use the id", code="AMBIGUOUS")
    return matches[0]


def cmd_add(args: argparse.Namespace) -> int:
    """Provision a new account."""
    store = open_store(args)

    if args.secret:
        secret = Generator.secret_from_base32(args.secret)
    else:
        secret = Generator.generate_secret()

    factor = Counter(args.counter) if args.counter is not None else Timer(args.period)
    generator = Generator(
        algorithm=Algorithm.from_string(args.algorithm),
        secret=secret,
        factor=factor,
        digits=args.digits,
    )
    account = Account.create(args.label, generator, issuer=args.issuer)
    account.save(store)

    print(f"Added {account.otp_type.value} account {account.id}")
    if not args.secret:
        print("Secret (Base32):", Generator.secret_to_base32(secret))
        print("Add this secret to the service you are enrolling with.")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List stored accounts."""
    store = open_store(args)
    for account in Account.load_all(store):
        issuer = account.issuer or "-"
        print(f"{account.id}  {account.otp_type.value}  {issuer}  {account.label}")
    return 0


def cmd_code(args: argparse.Namespace) -> int:
    """Print the current code for an account."""
    store = open_store(args)
    account = find_account(store, args.account)

    now = time.time()
    code, account = account.next_code(store, timestamp=now, strict=True)
    if account.otp_type is OTPType.TOTP:
        remaining = int(account.generator.remaining_seconds(now))
        print(f"{code} ({remaining}s left)")
    else:
        print(code)
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    """Delete an account."""
    store = open_store(args)
    account = find_account(store, args.account)
    account.remove(store)
    print(f"Removed {account.id}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="otpvault",
        description="otpvault - HOTP/TOTP authenticator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"otpvault {__version__}"
    )
    parser.add_argument("--store", help=f"Store file (default: ${STORE_ENV} or {DEFAULT_STORE})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # add command
    add_parser = subparsers.add_parser("add", help="Add an account")
    add_parser.add_argument("label", help="Account name, e.g. an email address")
    add_parser.add_argument("--issuer", help="Service name")
    add_parser.add_argument("--secret", help="Base32 secret (random if omitted)")
    add_parser.add_argument(
        "--algorithm",
        default=Algorithm.SHA1.value,
        help="SHA1, SHA256 or SHA512 (default: SHA1)",
    )
    add_parser.add_argument("--digits", type=int, default=DEFAULT_DIGITS, help="Code length")
    factor_group = add_parser.add_mutually_exclusive_group()
    factor_group.add_argument(
        "--period", type=float, default=DEFAULT_PERIOD, help="TOTP time step in seconds"
    )
    factor_group.add_argument("--counter", type=int, help="Initial HOTP counter")

    # list command
    subparsers.add_parser("list", help="List accounts")

    # code command
    code_parser = subparsers.add_parser("code", help="Show current code")
    code_parser.add_argument("account", help="Account id or label")

    # remove command
    remove_parser = subparsers.add_parser("remove", help="Remove an account")
    remove_parser.add_argument("account", help="Account id or label")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "code": cmd_code,
        "remove": cmd_remove,
    }

    try:
        return commands[args.command](args)
    except OTPVaultError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
