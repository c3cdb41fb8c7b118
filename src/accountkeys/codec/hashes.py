"""
Hash functions used by the cipher engine.
"""

import hashlib


def sha3_256(input_bytes: bytes) -> bytes:
    """
    Compute SHA3-256 hash of input bytes.

    Args:
        input_bytes: Input bytes to hash

    Returns:
        SHA3-256 hash as bytes (32 bytes)
    """
    return hashlib.sha3_256(input_bytes).digest()


def keyed_digest(key: bytes, data: bytes) -> bytes:
    """
    Compute the keystore MAC: SHA3-256(key || data).

    Args:
        key: MAC key
        data: Authenticated data

    Returns:
        32-byte tag
    """
    return sha3_256(key + data)


__all__ = ["sha3_256", "keyed_digest"]
