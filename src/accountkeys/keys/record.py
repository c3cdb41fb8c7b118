"""
Key record: one key pair's storage state.

A record is created in plaintext state (raw_key set), moves to encrypted
state with encrypt(password) and exposes its plaintext again with
decrypt(password). Decryption keeps the ciphertext so it can be repeated;
serialization then drops raw_key, so a persisted record holds either the
raw key or (encrypted_key, salt, mac), never both.
"""

from __future__ import annotations
import logging
import uuid
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..codec.base58 import encode_base58, decode_base58
from ..crypto import cipher
from ..crypto.cipher import Password
from ..crypto.ed25519 import Ed25519KeyPair
from ..crypto.keypairs import new_key_pair, DEFAULT_KEY_TYPE
from ..runtime.config import ScryptParams, DEFAULT_SCRYPT
from ..runtime.errors import (
    EmptyInputError,
    AlreadyEncryptedError,
    NotEncryptedError,
    KeyLockedError,
    MalformedRecordError,
)

logger = logging.getLogger(__name__)


class KeyRecord(BaseModel):
    """
    Storage state of a single key pair.

    All binary values are base58 text. Empty strings stand for absent fields.
    """
    id: str = Field(alias="kp_id", min_length=1, description="Stable identifier, seeds the key pair")
    key_type: str = Field(default=DEFAULT_KEY_TYPE, description="Key scheme tag")
    public_key: str = Field(default="", description="Base58 public key")
    raw_key: str = Field(default="", repr=False, description="Base58 private key, plaintext state only")
    salt: str = Field(default="", description="Base58 KDF salt || CTR nonce")
    encrypted_key: str = Field(default="", description="Base58 ciphertext")
    mac: str = Field(default="", description="Base58 integrity tag")

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def validate_single_form(cls, data: Any) -> Any:
        """A record holds either raw_key or encrypted fields, never both."""
        if isinstance(data, dict) and data.get("raw_key") and any(
                data.get(field) for field in ("encrypted_key", "salt", "mac")):
            raise ValueError("key pair record holds both a raw key and encrypted fields")
        return data

    @classmethod
    def new(cls, raw_key: str, key_type: str = DEFAULT_KEY_TYPE) -> KeyRecord:
        """
        Create a plaintext record for a raw key.

        Args:
            raw_key: Base58 private key
            key_type: Key scheme tag

        Returns:
            New record with a fresh identifier and its public key

        Raises:
            EmptyInputError: If raw_key is empty
            MalformedRecordError: If raw_key is not base58
            KeystoreError: If key_type is not supported
        """
        if not raw_key:
            raise EmptyInputError("Empty key")
        decode_base58(raw_key, "raw_key")

        record_id = str(uuid.uuid4())
        key_pair = new_key_pair(key_type, record_id)
        return cls(
            id=record_id,
            key_type=key_type,
            public_key=encode_base58(key_pair.public_key_bytes()),
            raw_key=raw_key,
        )

    def is_encrypted(self) -> bool:
        """
        Check whether the record is in encrypted state.

        A record with neither a raw key nor ciphertext counts as encrypted,
        since it has no usable plaintext.
        """
        return self.encrypted_key != "" or self.raw_key == ""

    def is_unlocked(self) -> bool:
        """Check whether the plaintext key is available in memory."""
        return self.raw_key != ""

    def has_ciphertext(self) -> bool:
        return self.salt != ""

    def encrypt(self, password: Password, scrypt: ScryptParams = DEFAULT_SCRYPT) -> None:
        """
        Encrypt the raw key and clear it.

        Args:
            password: Password to encrypt with
            scrypt: Scrypt cost parameters

        Raises:
            AlreadyEncryptedError: If the record is already encrypted
            EmptyInputError: If the password is empty
            MalformedRecordError: If raw_key is not base58
        """
        if self.is_encrypted():
            raise AlreadyEncryptedError("Already encrypted", details={"kp_id": self.id})

        plaintext = decode_base58(self.raw_key, "raw_key")
        blob = cipher.encrypt(plaintext, password, scrypt)

        self.encrypted_key = encode_base58(blob.ciphertext)
        self.salt = encode_base58(blob.salt)
        self.mac = encode_base58(blob.mac)
        self.raw_key = ""
        logger.debug(f"Encrypted key pair {self.id}")

    def decrypt(self, password: Password, scrypt: ScryptParams = DEFAULT_SCRYPT) -> None:
        """
        Recover the raw key. The encrypted fields are left in place.

        Args:
            password: Password used at encryption time
            scrypt: Scrypt cost parameters used at encryption time

        Raises:
            NotEncryptedError: If the record is not encrypted
            WrongPasswordError: If the password does not match
            MalformedRecordError: If the stored fields cannot be decoded
        """
        if not self.is_encrypted():
            raise NotEncryptedError("Not encrypted", details={"kp_id": self.id})

        salt = decode_base58(self.salt, "salt")
        ciphertext = decode_base58(self.encrypted_key, "encrypted_key")
        mac = decode_base58(self.mac, "mac")

        plaintext = cipher.decrypt(ciphertext, password, salt, mac, scrypt)
        self.raw_key = encode_base58(plaintext)
        logger.debug(f"Decrypted key pair {self.id}")

    def lock(self) -> None:
        """
        Discard the in-memory plaintext of a decrypted record.

        Raises:
            NotEncryptedError: If there is no ciphertext to fall back on
        """
        if not self.has_ciphertext():
            raise NotEncryptedError("Cannot lock a record that was never encrypted",
                                    details={"kp_id": self.id})
        self.raw_key = ""

    def raw_key_bytes(self) -> bytes:
        """
        Get the decoded raw key.

        Raises:
            KeyLockedError: If the plaintext is not available
        """
        if not self.is_unlocked():
            raise KeyLockedError("Key pair is encrypted, decrypt it first", details={"kp_id": self.id})
        return decode_base58(self.raw_key, "raw_key")

    def to_key_pair(self) -> Ed25519KeyPair:
        """
        Rebuild the key pair object from the record identifier.

        The record must be unlocked; the key pair itself is derived from the
        identifier, not from raw_key.

        Raises:
            KeyLockedError: If the record is locked
            KeystoreError: If key_type is not supported
        """
        if not self.is_unlocked():
            raise KeyLockedError("Empty key pair, decrypt the account first", details={"kp_id": self.id})
        return new_key_pair(self.key_type, self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        result: Dict[str, Any] = {
            "kp_id": self.id,
            "key_type": self.key_type,
            "public_key": self.public_key,
        }
        if self.has_ciphertext():
            result["salt"] = self.salt
            result["encrypted_key"] = self.encrypted_key
            result["mac"] = self.mac
        elif self.raw_key:
            result["raw_key"] = self.raw_key
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> KeyRecord:
        """
        Create from the persisted JSON shape.

        Raises:
            MalformedRecordError: If required fields are missing or mistyped,
                or the record holds both a raw key and ciphertext
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedRecordError(f"Invalid key pair record: {e.error_count()} error(s)", cause=e) from e

    def __str__(self) -> str:
        state = "encrypted" if self.is_encrypted() else "plaintext"
        return f"KeyRecord({self.id}, {self.key_type}, {state})"


__all__ = ["KeyRecord"]
