"""
Codec module for accountkeys.

Base58 text encoding and hashing helpers.
"""

from .base58 import encode_base58, decode_base58
from .hashes import sha3_256, keyed_digest

__all__ = [
    "encode_base58",
    "decode_base58",
    "sha3_256",
    "keyed_digest",
]
