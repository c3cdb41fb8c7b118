"""
Password-based key encryption.

Scrypt key derivation, AES-128-CTR encryption and a SHA3-256 integrity tag:

- derive_key(): scrypt(password, 32-byte salt) -> 32 bytes, split into a
  16-byte AES key and a 16-byte MAC key
- encrypt(): fresh 48-byte salt (32 bytes KDF salt || 16 bytes CTR nonce),
  ciphertext, and mac = SHA3-256(mac_key || ciphertext)
- decrypt(): verifies the mac in constant time before decrypting

A MAC mismatch is reported as WrongPasswordError; a salt of the wrong
length is a MalformedRecordError.
"""

from __future__ import annotations
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..codec.hashes import keyed_digest
from ..runtime.config import ScryptParams, DEFAULT_SCRYPT
from ..runtime.errors import EmptyInputError, MalformedRecordError, WrongPasswordError

logger = logging.getLogger(__name__)

KDF_SALT_SIZE = 32
NONCE_SIZE = 16
SALT_SIZE = KDF_SALT_SIZE + NONCE_SIZE
CIPHER_KEY_SIZE = 16
MAC_SIZE = 32

Password = Union[str, bytes]


@dataclass(frozen=True)
class EncryptedBlob:
    """Output of encrypt(): everything needed to decrypt, minus the password."""
    ciphertext: bytes
    salt: bytes  # KDF salt || CTR nonce
    mac: bytes

    @property
    def kdf_salt(self) -> bytes:
        return self.salt[:KDF_SALT_SIZE]

    @property
    def nonce(self) -> bytes:
        return self.salt[KDF_SALT_SIZE:]


def _password_bytes(password: Password) -> bytes:
    if isinstance(password, str):
        password = password.encode("utf-8")
    if not password:
        raise EmptyInputError("Empty password")
    return password


def split_salt(salt: bytes) -> Tuple[bytes, bytes]:
    """
    Split a stored salt into (kdf_salt, nonce).

    Raises:
        MalformedRecordError: If the salt is not exactly 48 bytes
    """
    if len(salt) != SALT_SIZE:
        raise MalformedRecordError(
            f"Salt must be {SALT_SIZE} bytes, got {len(salt)}",
            details={"expected": SALT_SIZE, "actual": len(salt)}
        )
    return salt[:KDF_SALT_SIZE], salt[KDF_SALT_SIZE:]


def derive_key(password: Password, kdf_salt: bytes,
               params: ScryptParams = DEFAULT_SCRYPT) -> bytes:
    """
    Derive 32 bytes of key material from a password with scrypt.

    Args:
        password: Password (str is UTF-8 encoded)
        kdf_salt: 32-byte salt
        params: Scrypt cost parameters

    Returns:
        32 bytes: [0:16) AES key, [16:32) MAC key

    Raises:
        EmptyInputError: If the password is empty
        MalformedRecordError: If the salt is not 32 bytes
    """
    secret = _password_bytes(password)
    if len(kdf_salt) != KDF_SALT_SIZE:
        raise MalformedRecordError(f"KDF salt must be {KDF_SALT_SIZE} bytes, got {len(kdf_salt)}")

    kdf = Scrypt(salt=kdf_salt, length=params.length, n=params.n, r=params.r, p=params.p)
    return kdf.derive(secret)


def _ctr_transform(cipher_key: bytes, nonce: bytes, data: bytes) -> bytes:
    # CTR is its own inverse
    transform = Cipher(algorithms.AES(cipher_key), modes.CTR(nonce)).encryptor()
    return transform.update(data) + transform.finalize()


def encrypt(plaintext: bytes, password: Password,
            params: ScryptParams = DEFAULT_SCRYPT,
            salt: Optional[bytes] = None) -> EncryptedBlob:
    """
    Encrypt plaintext under a password.

    Args:
        plaintext: Bytes to encrypt (may be empty)
        password: Password
        params: Scrypt cost parameters
        salt: Fixed 48-byte salt, for known-answer tests only

    Returns:
        EncryptedBlob with ciphertext, 48-byte salt and 32-byte mac
    """
    secret = _password_bytes(password)
    if salt is None:
        salt = secrets.token_bytes(SALT_SIZE)
    kdf_salt, nonce = split_salt(salt)

    key = derive_key(secret, kdf_salt, params)
    ciphertext = _ctr_transform(key[:CIPHER_KEY_SIZE], nonce, plaintext)
    mac = keyed_digest(key[CIPHER_KEY_SIZE:], ciphertext)

    logger.debug(f"Encrypted {len(plaintext)} bytes")
    return EncryptedBlob(ciphertext=ciphertext, salt=salt, mac=mac)


def decrypt(ciphertext: bytes, password: Password, salt: bytes, expected_mac: bytes,
            params: ScryptParams = DEFAULT_SCRYPT) -> bytes:
    """
    Verify and decrypt ciphertext.

    Args:
        ciphertext: Encrypted bytes
        password: Password used at encryption time
        salt: 48-byte salt returned by encrypt()
        expected_mac: Stored integrity tag
        params: Scrypt cost parameters used at encryption time

    Returns:
        Plaintext bytes

    Raises:
        EmptyInputError: If the password is empty
        MalformedRecordError: If the salt is not 48 bytes
        WrongPasswordError: If the mac does not verify
    """
    secret = _password_bytes(password)
    kdf_salt, nonce = split_salt(salt)

    key = derive_key(secret, kdf_salt, params)
    mac = keyed_digest(key[CIPHER_KEY_SIZE:], ciphertext)
    if not hmac.compare_digest(mac, expected_mac):
        raise WrongPasswordError("Wrong password")

    return _ctr_transform(key[:CIPHER_KEY_SIZE], nonce, ciphertext)


__all__ = [
    "EncryptedBlob",
    "derive_key",
    "encrypt",
    "decrypt",
    "split_salt",
    "SALT_SIZE",
    "KDF_SALT_SIZE",
    "NONCE_SIZE",
    "MAC_SIZE",
]
