"""
Cryptographic primitives for accountkeys.

Provides the password-based cipher engine and the Ed25519 key pairs that
account records reconstruct from their identifiers.
"""

from .ed25519 import Ed25519KeyPair, Ed25519PublicKey, Ed25519PrivateKey, Ed25519Error
from .keypairs import new_key_pair, supported_key_types, DEFAULT_KEY_TYPE
from .cipher import EncryptedBlob, derive_key, encrypt, decrypt

__all__ = [
    "Ed25519KeyPair",
    "Ed25519PublicKey",
    "Ed25519PrivateKey",
    "Ed25519Error",
    "new_key_pair",
    "supported_key_types",
    "DEFAULT_KEY_TYPE",
    "EncryptedBlob",
    "derive_key",
    "encrypt",
    "decrypt",
]
