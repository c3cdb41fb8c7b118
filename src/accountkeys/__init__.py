"""
accountkeys - password-protected account keystore

Stores the key pairs of named accounts on disk, each private key encrypted
under a password (scrypt + AES-128-CTR + SHA3-256 MAC), with automatic
backups whenever an account file is overwritten.
"""

from .runtime.errors import *
from .runtime.config import ScryptParams, KeystoreConfig, DEFAULT_SCRYPT
from .crypto import Ed25519KeyPair, new_key_pair, supported_key_types
from .keys import *

__version__ = "0.1.0"
__all__ = [
    # Errors
    "ErrorCode",
    "KeystoreError",
    "EmptyInputError",
    "AlreadyEncryptedError",
    "NotEncryptedError",
    "KeyLockedError",
    "WrongPasswordError",
    "MalformedRecordError",
    "UnknownRoleError",
    "NotFoundError",
    "StoreIOError",
    "PermissionOrOSError",
    "ErrorHandler",

    # Configuration
    "ScryptParams",
    "KeystoreConfig",
    "DEFAULT_SCRYPT",

    # Key pairs
    "Ed25519KeyPair",
    "new_key_pair",
    "supported_key_types",

    # Records and stores
    "KeyRecord",
    "AccountRecord",
    "AccountStore",
    "MemoryAccountStore",
    "FileAccountStore",
    "save_account_to",
    "load_account_from",
]
