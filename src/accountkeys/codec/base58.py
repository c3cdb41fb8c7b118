"""
Base58 text encoding for key material.

Every binary field of a persisted account (public key, raw key, ciphertext,
salt, MAC) uses the Bitcoin base58 alphabet.
"""

from __future__ import annotations

import base58

from ..runtime.errors import MalformedRecordError


def encode_base58(data: bytes) -> str:
    """
    Encode bytes as a base58 string.

    Args:
        data: Bytes to encode

    Returns:
        Base58 text (empty for empty input)
    """
    return base58.b58encode(data).decode("ascii")


def decode_base58(text: str, field: str = "value") -> bytes:
    """
    Decode a base58 string.

    Args:
        text: Base58 text
        field: Field name used in the error message

    Returns:
        Decoded bytes

    Raises:
        MalformedRecordError: If the text is not valid base58
    """
    try:
        return base58.b58decode(text.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        raise MalformedRecordError(f"Invalid base58 in {field}", cause=e) from e


__all__ = ["encode_base58", "decode_base58"]
