"""
Test the keystore error model.
"""

import pytest

from accountkeys.runtime.errors import (
    AlreadyEncryptedError,
    EmptyInputError,
    ErrorCode,
    ErrorHandler,
    KeyLockedError,
    KeystoreError,
    MalformedRecordError,
    NotEncryptedError,
    NotFoundError,
    PermissionOrOSError,
    StoreIOError,
    UnknownRoleError,
    WrongPasswordError,
)


class TestKeystoreError:
    """Test the base error type."""

    def test_str_with_details_and_cause(self):
        cause = OSError("disk full")
        error = KeystoreError("Write failed", ErrorCode.STORE_IO_FAILURE,
                              details={"path": "/tmp/a.json"}, cause=cause)

        assert str(error) == "[STORE_IO_FAILURE] Write failed | Details: {'path': '/tmp/a.json'} | Caused by: disk full"

    def test_str_plain(self):
        assert str(KeystoreError("boom")) == "[UNKNOWN] boom"

    def test_to_dict(self):
        error = WrongPasswordError(details={"kp_id": "abc"})
        assert error.to_dict() == {
            "code": ErrorCode.WRONG_PASSWORD.value,
            "message": "Wrong password",
            "details": {"kp_id": "abc"},
        }

    def test_details_default_to_empty_dict(self):
        assert EmptyInputError().details == {}


class TestErrorKinds:
    """Test that each error kind carries its code."""

    @pytest.mark.parametrize("error_class,code", [
        (EmptyInputError, ErrorCode.EMPTY_INPUT),
        (AlreadyEncryptedError, ErrorCode.ALREADY_ENCRYPTED),
        (NotEncryptedError, ErrorCode.NOT_ENCRYPTED),
        (KeyLockedError, ErrorCode.KEY_LOCKED),
        (WrongPasswordError, ErrorCode.WRONG_PASSWORD),
        (MalformedRecordError, ErrorCode.MALFORMED_RECORD),
        (UnknownRoleError, ErrorCode.UNKNOWN_ROLE),
        (NotFoundError, ErrorCode.NOT_FOUND),
        (StoreIOError, ErrorCode.STORE_IO_FAILURE),
        (PermissionOrOSError, ErrorCode.PERMISSION_OR_OS_FAILURE),
    ])
    def test_code(self, error_class, code):
        error = error_class()
        assert isinstance(error, KeystoreError)
        assert error.code == code
        assert error.message


class TestErrorHandler:
    """Test error classification."""

    def test_user_errors(self):
        assert ErrorHandler.is_user_error(WrongPasswordError())
        assert ErrorHandler.is_user_error(NotFoundError())
        assert not ErrorHandler.is_user_error(KeystoreError("bug", ErrorCode.INTERNAL))
        assert not ErrorHandler.is_user_error(ValueError("x"))

    def test_storage_errors(self):
        assert ErrorHandler.is_storage_error(StoreIOError())
        assert ErrorHandler.is_storage_error(PermissionOrOSError())
        assert ErrorHandler.is_storage_error(OSError())
        assert not ErrorHandler.is_storage_error(WrongPasswordError())
