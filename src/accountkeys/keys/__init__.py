"""
Key management for accountkeys.

Provides key records, account records and the stores that persist them.
"""

from .record import KeyRecord
from .account import AccountRecord
from .keystore import (
    AccountStore,
    MemoryAccountStore,
    FileAccountStore,
    save_account_to,
    load_account_from,
)

__all__ = [
    "KeyRecord",
    "AccountRecord",
    "AccountStore",
    "MemoryAccountStore",
    "FileAccountStore",
    "save_account_to",
    "load_account_from",
]
