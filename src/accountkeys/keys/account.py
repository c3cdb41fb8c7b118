"""
Account record: a named set of key records keyed by role label.

Role labels ("owner", "active", ...) are opaque here. Batch encrypt/decrypt
walk the members in insertion order and stop at the first error without
rolling back members that were already processed.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..crypto.cipher import Password
from ..crypto.ed25519 import Ed25519KeyPair
from ..runtime.config import ScryptParams, DEFAULT_SCRYPT
from ..runtime.errors import (
    AlreadyEncryptedError,
    NotEncryptedError,
    UnknownRoleError,
    EmptyInputError,
    MalformedRecordError,
)
from .record import KeyRecord

logger = logging.getLogger(__name__)


class AccountRecord(BaseModel):
    """
    A named account and its key records.

    Usage:
        account = AccountRecord(name="alice")
        account.add_key_pair("active", KeyRecord.new(raw_key))
        account.encrypt("password")
        store.save_account(account)
    """
    name: str = Field(default="")
    keypairs: Dict[str, KeyRecord] = Field(default_factory=dict)

    def add_key_pair(self, role: str, record: KeyRecord) -> None:
        """
        Store a key record under a role label, replacing any previous one.

        Raises:
            EmptyInputError: If the role label is empty
        """
        if not role:
            raise EmptyInputError("Empty role label")
        self.keypairs[role] = record

    def remove_key_pair(self, role: str) -> KeyRecord:
        """
        Remove and return the record under a role label.

        Raises:
            UnknownRoleError: If the role is absent
        """
        try:
            return self.keypairs.pop(role)
        except KeyError:
            raise UnknownRoleError(f"Invalid permission {role}", details={"account": self.name}) from None

    def get_record(self, role: str) -> KeyRecord:
        """
        Get the key record under a role label.

        Raises:
            UnknownRoleError: If the role is absent
        """
        record = self.keypairs.get(role)
        if record is None:
            raise UnknownRoleError(f"Invalid permission {role}",
                                   details={"account": self.name, "roles": self.roles()})
        return record

    def roles(self) -> List[str]:
        """Role labels in insertion order."""
        return list(self.keypairs)

    def lookup_signing_key(self, role: str) -> Ed25519KeyPair:
        """
        Get the usable key pair for a role.

        Raises:
            UnknownRoleError: If the role is absent
            KeyLockedError: If the record has not been decrypted
        """
        return self.get_record(role).to_key_pair()

    get_key_pair = lookup_signing_key

    def is_encrypted(self) -> bool:
        """True if at least one member is encrypted."""
        return any(record.is_encrypted() for record in self.keypairs.values())

    def encrypt(self, password: Password, scrypt: ScryptParams = DEFAULT_SCRYPT) -> None:
        """
        Encrypt every member.

        Raises:
            AlreadyEncryptedError: If any member is already encrypted
            EmptyInputError: If the password is empty
        """
        if self.is_encrypted():
            raise AlreadyEncryptedError("Account already encrypted", details={"account": self.name})
        for record in self.keypairs.values():
            record.encrypt(password, scrypt)
        logger.debug(f"Encrypted account {self.name}")

    def decrypt(self, password: Password, scrypt: ScryptParams = DEFAULT_SCRYPT) -> None:
        """
        Decrypt every member.

        Raises:
            NotEncryptedError: If no member is encrypted, or a member is plaintext
            WrongPasswordError: If the password does not match a member
        """
        if not self.is_encrypted():
            raise NotEncryptedError("Not encrypted", details={"account": self.name})
        for record in self.keypairs.values():
            record.decrypt(password, scrypt)
        logger.info(f"Decrypt keystore of account {self.name} succeed")

    def lock(self) -> None:
        """Discard decrypted plaintext from every encrypted member."""
        for record in self.keypairs.values():
            if record.has_ciphertext():
                record.lock()

    def change_password(self, old_password: Password, new_password: Password,
                        scrypt: ScryptParams = DEFAULT_SCRYPT,
                        new_scrypt: Optional[ScryptParams] = None) -> None:
        """
        Re-encrypt every member under a new password.

        Works on copies and commits only when every member succeeded, so a
        wrong old password leaves the account untouched. Plaintext members
        are encrypted under the new password.

        Args:
            old_password: Current password
            new_password: Password to set
            scrypt: Scrypt parameters the members were encrypted with
            new_scrypt: Scrypt parameters for the new encryption (defaults to scrypt)

        Raises:
            WrongPasswordError: If old_password does not match a member
            EmptyInputError: If a password is empty
        """
        if not new_password:
            raise EmptyInputError("Empty password")
        new_scrypt = new_scrypt or scrypt

        staged: Dict[str, KeyRecord] = {}
        for role, record in self.keypairs.items():
            copy = record.model_copy()
            if copy.has_ciphertext():
                copy.decrypt(old_password, scrypt)
                copy = KeyRecord(
                    id=copy.id,
                    key_type=copy.key_type,
                    public_key=copy.public_key,
                    raw_key=copy.raw_key,
                )
            copy.encrypt(new_password, new_scrypt)
            staged[role] = copy

        self.keypairs = staged
        logger.info(f"Changed password of account {self.name}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "name": self.name,
            "keypairs": {role: record.to_dict() for role, record in self.keypairs.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AccountRecord:
        """
        Create from the persisted JSON shape.

        Raises:
            MalformedRecordError: If the data is not a valid account
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedRecordError(f"Invalid account record: {e.error_count()} error(s)", cause=e) from e

    def to_json(self) -> str:
        """Serialize to indented JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> AccountRecord:
        """
        Parse indented or compact JSON.

        Raises:
            MalformedRecordError: If the text is not a valid account
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedRecordError(f"Key store should be a json file, {e}", cause=e) from e
        if not isinstance(data, dict):
            raise MalformedRecordError("Key store should be a json object")
        return cls.from_dict(data)

    def __str__(self) -> str:
        state = "encrypted" if self.is_encrypted() else "plaintext"
        return f"AccountRecord({self.name}, {len(self.keypairs)} keys, {state})"


__all__ = ["AccountRecord"]
