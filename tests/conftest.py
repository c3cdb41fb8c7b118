"""
Shared fixtures:
- Cheap scrypt parameters so encryption round trips stay fast
- A temporary account directory and a file store rooted in it
- Deterministic base58 private keys
"""
import hashlib

import pytest

from accountkeys.codec.base58 import encode_base58
from accountkeys.keys.account import AccountRecord
from accountkeys.keys.keystore import FileAccountStore
from accountkeys.keys.record import KeyRecord
from accountkeys.runtime.config import KeystoreConfig, ScryptParams


@pytest.fixture
def fast_scrypt():
    """Scrypt parameters that derive in milliseconds."""
    return ScryptParams(n=16, r=1, p=1)


@pytest.fixture
def account_dir(tmp_path):
    """Account directory that does not exist yet."""
    return tmp_path / "accounts"


@pytest.fixture
def store_config(account_dir, fast_scrypt):
    return KeystoreConfig(account_dir=account_dir, scrypt=fast_scrypt)


@pytest.fixture
def file_store(store_config):
    """File account store in a temporary directory."""
    return FileAccountStore(config=store_config)


@pytest.fixture
def make_raw_key():
    """Factory for deterministic base58 private keys."""
    def _make(label: str = "key") -> str:
        return encode_base58(hashlib.sha256(label.encode("utf-8")).digest())
    return _make


@pytest.fixture
def make_account(make_raw_key):
    """Factory for plaintext accounts with one record per role."""
    def _make(name: str = "alice", roles=("owner", "active")) -> AccountRecord:
        account = AccountRecord(name=name)
        for role in roles:
            account.add_key_pair(role, KeyRecord.new(make_raw_key(f"{name}/{role}")))
        return account
    return _make
