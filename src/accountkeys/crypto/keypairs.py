"""
Key-pair generator dispatch.

Maps a key-type tag to the generator that rebuilds a key pair from a seed
string. Key records reconstruct their key pair from their identifier through
this module.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping

from ..runtime.errors import KeystoreError, ErrorCode
from .ed25519 import Ed25519KeyPair

DEFAULT_KEY_TYPE = "ed25519"

KeyPairGenerator = Callable[[str], Ed25519KeyPair]

_GENERATORS: Dict[str, KeyPairGenerator] = {
    "ed25519": Ed25519KeyPair.from_seed,
}

GENERATORS: Mapping[str, KeyPairGenerator] = MappingProxyType(_GENERATORS)


def supported_key_types() -> List[str]:
    """List the key-type tags that have a generator."""
    return sorted(GENERATORS)


def new_key_pair(key_type: str, seed: str) -> Ed25519KeyPair:
    """
    Deterministically build the key pair for a seed.

    Args:
        key_type: Key-type tag (e.g. "ed25519")
        seed: Seed string, usually a key record identifier

    Returns:
        Key pair object

    Raises:
        KeystoreError: If the key type is not supported
    """
    generator = GENERATORS.get(key_type)
    if generator is None:
        raise KeystoreError(
            f"Unsupported key type: {key_type}",
            ErrorCode.INVALID_KEY,
            details={"supported": supported_key_types()}
        )
    return generator(seed)


__all__ = ["DEFAULT_KEY_TYPE", "GENERATORS", "supported_key_types", "new_key_pair"]
