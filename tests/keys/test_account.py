"""
Test account records: role management, batch encrypt/decrypt,
password changes and JSON round trips.
"""

import json

import pytest

from accountkeys.codec.base58 import encode_base58
from accountkeys.keys.account import AccountRecord
from accountkeys.keys.record import KeyRecord
from accountkeys.runtime.errors import (
    AlreadyEncryptedError,
    EmptyInputError,
    KeyLockedError,
    MalformedRecordError,
    NotEncryptedError,
    UnknownRoleError,
    WrongPasswordError,
)


class TestAccountRoles:
    """Test role label management."""

    def test_add_and_get(self, make_raw_key):
        account = AccountRecord(name="alice")
        record = KeyRecord.new(make_raw_key())
        account.add_key_pair("active", record)

        assert account.get_record("active") is record
        assert account.roles() == ["active"]

    def test_roles_keep_insertion_order(self, make_account):
        account = make_account(roles=("owner", "active", "posting"))
        assert account.roles() == ["owner", "active", "posting"]

    def test_add_replaces(self, make_raw_key):
        account = AccountRecord(name="alice")
        account.add_key_pair("active", KeyRecord.new(make_raw_key("1")))
        replacement = KeyRecord.new(make_raw_key("2"))
        account.add_key_pair("active", replacement)

        assert account.get_record("active") is replacement
        assert len(account.keypairs) == 1

    def test_empty_role(self, make_raw_key):
        with pytest.raises(EmptyInputError):
            AccountRecord(name="alice").add_key_pair("", KeyRecord.new(make_raw_key()))

    def test_unknown_role(self, make_account):
        account = make_account()
        with pytest.raises(UnknownRoleError) as exc_info:
            account.get_record("posting")
        assert "posting" in exc_info.value.message

    def test_remove(self, make_account):
        account = make_account()
        removed = account.remove_key_pair("owner")

        assert isinstance(removed, KeyRecord)
        assert account.roles() == ["active"]
        with pytest.raises(UnknownRoleError):
            account.remove_key_pair("owner")

    def test_lookup_signing_key(self, make_account):
        account = make_account()
        key_pair = account.lookup_signing_key("active")

        assert encode_base58(key_pair.public_key_bytes()) == account.get_record("active").public_key
        assert account.get_key_pair("active").public_key_bytes() == key_pair.public_key_bytes()

    def test_lookup_signing_key_locked(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("pw", fast_scrypt)

        with pytest.raises(KeyLockedError):
            account.lookup_signing_key("active")
        with pytest.raises(UnknownRoleError):
            account.lookup_signing_key("posting")


class TestAccountEncryption:
    """Test batch encryption over every member."""

    def test_round_trip(self, make_account, make_raw_key, fast_scrypt):
        account = make_account()
        account.encrypt("pw", fast_scrypt)

        assert account.is_encrypted()
        assert all(record.raw_key == "" for record in account.keypairs.values())

        account.decrypt("pw", fast_scrypt)
        assert account.get_record("owner").raw_key == make_raw_key("alice/owner")
        assert account.get_record("active").raw_key == make_raw_key("alice/active")

    def test_plaintext_account_is_not_encrypted(self, make_account):
        assert not make_account().is_encrypted()

    def test_empty_account(self, fast_scrypt):
        """An account without members is neither encrypted nor decryptable."""
        account = AccountRecord(name="empty")
        assert not account.is_encrypted()

        account.encrypt("pw", fast_scrypt)
        with pytest.raises(NotEncryptedError):
            account.decrypt("pw", fast_scrypt)

    def test_mixed_account_refuses_encrypt(self, make_account, make_raw_key, fast_scrypt):
        """One encrypted member makes the whole account count as encrypted."""
        account = make_account()
        account.get_record("owner").encrypt("pw", fast_scrypt)
        active_before = account.get_record("active").model_dump()

        assert account.is_encrypted()
        with pytest.raises(AlreadyEncryptedError):
            account.encrypt("pw", fast_scrypt)
        assert account.get_record("active").model_dump() == active_before

    def test_decrypt_plaintext_account(self, make_account, fast_scrypt):
        with pytest.raises(NotEncryptedError):
            make_account().decrypt("pw", fast_scrypt)

    def test_wrong_password(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("right", fast_scrypt)
        before = account.to_dict()

        with pytest.raises(WrongPasswordError):
            account.decrypt("wrong", fast_scrypt)
        assert account.to_dict() == before

    def test_empty_password(self, make_account, fast_scrypt):
        account = make_account()
        with pytest.raises(EmptyInputError):
            account.encrypt("", fast_scrypt)

    def test_lock(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("pw", fast_scrypt)
        account.decrypt("pw", fast_scrypt)

        account.lock()
        assert all(not record.is_unlocked() for record in account.keypairs.values())


class TestChangePassword:
    """Test re-encryption under a new password."""

    def test_change_password(self, make_account, make_raw_key, fast_scrypt):
        account = make_account()
        account.encrypt("old", fast_scrypt)

        account.change_password("old", "new", fast_scrypt)

        with pytest.raises(WrongPasswordError):
            account.decrypt("old", fast_scrypt)
        account.decrypt("new", fast_scrypt)
        assert account.get_record("owner").raw_key == make_raw_key("alice/owner")

    def test_wrong_old_password_leaves_account(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("old", fast_scrypt)
        before = account.to_dict()

        with pytest.raises(WrongPasswordError):
            account.change_password("wrong", "new", fast_scrypt)
        assert account.to_dict() == before

    def test_empty_new_password(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("old", fast_scrypt)
        with pytest.raises(EmptyInputError):
            account.change_password("old", "", fast_scrypt)

    def test_plaintext_members_get_encrypted(self, make_account, fast_scrypt):
        account = make_account()
        account.change_password("unused", "new", fast_scrypt)

        assert all(record.encrypted_key for record in account.keypairs.values())
        account.decrypt("new", fast_scrypt)

    def test_new_scrypt_params(self, make_account, fast_scrypt):
        from accountkeys.runtime.config import ScryptParams

        stronger = ScryptParams(n=64, r=1, p=1)
        account = make_account()
        account.encrypt("old", fast_scrypt)

        account.change_password("old", "new", fast_scrypt, new_scrypt=stronger)
        with pytest.raises(WrongPasswordError):
            account.decrypt("new", fast_scrypt)
        account.decrypt("new", stronger)


class TestAccountSerialization:
    """Test the persisted JSON shape."""

    def test_json_shape(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("pw", fast_scrypt)
        data = json.loads(account.to_json())

        assert data["name"] == "alice"
        assert list(data["keypairs"]) == ["owner", "active"]
        assert set(data["keypairs"]["active"]) == {
            "kp_id", "key_type", "public_key", "salt", "encrypted_key", "mac"
        }

    def test_indented_output(self, make_account):
        assert "\n  " in make_account().to_json()

    def test_round_trip(self, make_account, fast_scrypt):
        account = make_account()
        account.encrypt("pw", fast_scrypt)
        restored = AccountRecord.from_json(account.to_json())

        assert restored == account
        restored.decrypt("pw", fast_scrypt)

    def test_compact_json_accepted(self, make_account):
        account = make_account()
        compact = json.dumps(account.to_dict(), separators=(",", ":"))
        assert AccountRecord.from_json(compact) == account

    @pytest.mark.parametrize("text", ["", "not json", "[1, 2]", '"alice"'])
    def test_invalid_json(self, text):
        with pytest.raises(MalformedRecordError):
            AccountRecord.from_json(text)

    def test_invalid_member(self):
        with pytest.raises(MalformedRecordError):
            AccountRecord.from_json('{"name": "alice", "keypairs": {"active": {"key_type": "ed25519"}}}')

    def test_str(self, make_account):
        assert str(make_account()) == "AccountRecord(alice, 2 keys, plaintext)"
