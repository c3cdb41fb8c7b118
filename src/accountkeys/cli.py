"""
accountkeys command line interface.

Usage:
    accountkeys import alice <private-key>          # Import a key as alice/active
    accountkeys import alice <private-key> --role owner
    accountkeys list                                # List stored accounts
    accountkeys show alice                          # Show roles and public keys
    accountkeys export alice --role owner           # Print the decrypted private key
    accountkeys passwd alice                        # Change the password
    accountkeys delete alice                        # Remove the account file
"""

from __future__ import annotations
import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional

from .crypto.keypairs import DEFAULT_KEY_TYPE, supported_key_types
from .keys.account import AccountRecord
from .keys.keystore import FileAccountStore
from .keys.record import KeyRecord
from .runtime.config import KeystoreConfig
from .runtime.errors import KeystoreError, EmptyInputError, WrongPasswordError, ErrorHandler

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "active"

PasswordPrompt = Callable[[str], str]


class KeystoreCLI:
    """Runs one parsed command against a file account store."""

    def __init__(self, store: FileAccountStore, prompt: PasswordPrompt = getpass.getpass,
                 out=None):
        self.store = store
        self.scrypt = store.config.scrypt
        self.prompt = prompt
        self.out = out or sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def _ask_new_password(self) -> str:
        password = self.prompt("New password: ")
        if not password:
            raise EmptyInputError("Empty password")
        if self.prompt("Repeat password: ") != password:
            raise WrongPasswordError("Passwords do not match")
        return password

    def cmd_import(self, args: argparse.Namespace) -> int:
        record = KeyRecord.new(args.private_key, args.key_type)

        if self.store.has_account(args.name):
            account = self.store.load_account(args.name)
            if not account.is_encrypted():
                # the whole account gets encrypted under a password chosen now
                password = self._ask_new_password()
                account.add_key_pair(args.role, record)
                account.encrypt(password, self.scrypt)
                return self._save_imported(account, args.role, record)
            password = self.prompt(f"Password of account {args.name}: ")
            # check the password against the stored keys first
            account.decrypt(password, self.scrypt)
            account.lock()
        else:
            account = AccountRecord(name=args.name)
            password = self._ask_new_password()

        record.encrypt(password, self.scrypt)
        account.add_key_pair(args.role, record)
        return self._save_imported(account, args.role, record)

    def _save_imported(self, account: AccountRecord, role: str, record: KeyRecord) -> int:
        self.store.save_account(account)
        self._print(f"Imported {role} key of account {account.name}: {record.public_key}")
        return 0

    def cmd_list(self, args: argparse.Namespace) -> int:
        accounts = self.store.list_accounts()
        if not accounts:
            self._print(f"No accounts in {self.store.account_dir}")
            return 0
        for account in sorted(accounts, key=lambda a: a.name):
            self._print(f"{account.name}\t{', '.join(account.roles())}")
        return 0

    def cmd_show(self, args: argparse.Namespace) -> int:
        account = self.store.load_account(args.name)
        self._print(f"Account: {account.name}")
        for role, record in account.keypairs.items():
            state = "encrypted" if record.is_encrypted() else "plaintext"
            self._print(f"  {role}: {record.key_type} {record.public_key} ({state})")
        return 0

    def cmd_export(self, args: argparse.Namespace) -> int:
        account = self.store.load_account(args.name)
        record = account.get_record(args.role)
        if record.is_encrypted():
            record.decrypt(self.prompt(f"Password of account {args.name}: "), self.scrypt)
        self._print(record.raw_key)
        return 0

    def cmd_passwd(self, args: argparse.Namespace) -> int:
        account = self.store.load_account(args.name)
        old_password = self.prompt(f"Current password of account {args.name}: ")
        new_password = self._ask_new_password()
        account.change_password(old_password, new_password, self.scrypt)
        self.store.save_account(account)
        self._print(f"Password of account {args.name} changed")
        return 0

    def cmd_delete(self, args: argparse.Namespace) -> int:
        self.store.delete_account(args.name)
        self._print(f"Account {args.name} deleted")
        return 0

    def run(self, args: argparse.Namespace) -> int:
        handler = getattr(self, f"cmd_{args.command}")
        return handler(args)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="accountkeys",
        description="Manage password-protected account key pairs"
    )
    parser.add_argument(
        "--dir",
        help="Account directory (default: $ACCOUNTKEYS_DIR or ~/.accountkeys/accounts)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_import = subparsers.add_parser("import", help="Import a private key into an account")
    p_import.add_argument("name", help="Account name")
    p_import.add_argument("private_key", help="Base58 private key")
    p_import.add_argument("--role", default=DEFAULT_ROLE, help=f"Role label (default: {DEFAULT_ROLE})")
    p_import.add_argument("--key-type", default=DEFAULT_KEY_TYPE, choices=supported_key_types(),
                          help=f"Key type (default: {DEFAULT_KEY_TYPE})")

    subparsers.add_parser("list", help="List accounts")

    p_show = subparsers.add_parser("show", help="Show the key pairs of an account")
    p_show.add_argument("name", help="Account name")

    p_export = subparsers.add_parser("export", help="Print a decrypted private key")
    p_export.add_argument("name", help="Account name")
    p_export.add_argument("--role", default=DEFAULT_ROLE, help=f"Role label (default: {DEFAULT_ROLE})")

    p_passwd = subparsers.add_parser("passwd", help="Change the password of an account")
    p_passwd.add_argument("name", help="Account name")

    p_delete = subparsers.add_parser("delete", help="Delete an account file")
    p_delete.add_argument("name", help="Account name")

    return parser


def main(argv: Optional[List[str]] = None, prompt: PasswordPrompt = getpass.getpass) -> int:
    """Command line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        config = KeystoreConfig.from_env(account_dir=args.dir)
        cli = KeystoreCLI(FileAccountStore(config=config), prompt=prompt)
        return cli.run(args)
    except KeystoreError as e:
        if not ErrorHandler.is_user_error(e):
            raise
        logger.debug(f"Command {args.command} failed: {e}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
