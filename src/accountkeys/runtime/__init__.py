"""Runtime helpers for accountkeys"""

from .errors import KeystoreError, ErrorCode
from .config import ScryptParams, KeystoreConfig, DEFAULT_SCRYPT

__all__ = [
    "KeystoreError",
    "ErrorCode",
    "ScryptParams",
    "KeystoreConfig",
    "DEFAULT_SCRYPT",
]
