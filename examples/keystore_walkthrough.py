#!/usr/bin/env python3

"""Create an account, encrypt it, save it twice and read it back"""

import tempfile
from pathlib import Path

from accountkeys import (
    AccountRecord,
    Ed25519KeyPair,
    FileAccountStore,
    KeyRecord,
    KeystoreConfig,
    ScryptParams,
    WrongPasswordError,
)
from accountkeys.codec import encode_base58


def main():
    """Main example function"""
    print("=== accountkeys walkthrough ===")

    with tempfile.TemporaryDirectory() as tmp:
        # Low scrypt cost so the example finishes quickly
        config = KeystoreConfig(account_dir=Path(tmp) / "accounts", scrypt=ScryptParams(n=1024))
        store = FileAccountStore(config=config)

        account = AccountRecord(name="alice")
        for role in ("owner", "active"):
            private_key = Ed25519KeyPair.generate().private_key_bytes()
            account.add_key_pair(role, KeyRecord.new(encode_base58(private_key)))
        print(f"Created {account}")

        account.encrypt("correct horse", config.scrypt)
        store.save_account(account)
        print(f"Saved to {store.account_dir / 'alice.json'}")

        # Saving again moves the previous file into backup/
        store.save_account(account)
        for backup in store.list_backups("alice"):
            print(f"Backup: {backup.name}")

        loaded = store.load_account("alice")
        try:
            loaded.decrypt("wrong horse", config.scrypt)
        except WrongPasswordError as e:
            print(f"Expected failure: {e}")

        loaded.decrypt("correct horse", config.scrypt)
        key_pair = loaded.lookup_signing_key("active")
        signature = key_pair.sign(b"hello")
        print(f"Signature valid: {key_pair.verify(b'hello', signature)}")


if __name__ == "__main__":
    main()
