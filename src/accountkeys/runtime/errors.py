"""
Keystore Error Model

This module provides the error handling framework for accountkeys. Every
failure raised by the cipher engine, the key/account records and the account
stores is a KeystoreError carrying a stable ErrorCode.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import IntEnum


class ErrorCode(IntEnum):
    """Keystore error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2
    EMPTY_INPUT = 3
    NOT_FOUND = 4

    # Encryption state errors (100-199)
    ALREADY_ENCRYPTED = 100
    NOT_ENCRYPTED = 101
    KEY_LOCKED = 102

    # Authentication errors (200-299)
    WRONG_PASSWORD = 200

    # Encoding errors (300-399)
    MALFORMED_RECORD = 300

    # Key/Account errors (400-499)
    INVALID_KEY = 400
    UNKNOWN_ROLE = 401

    # Storage errors (500-599)
    STORE_IO_FAILURE = 500
    PERMISSION_OR_OS_FAILURE = 501


class KeystoreError(Exception):
    """
    Base class for all keystore errors.

    Provides structured error information: a code, a message, optional
    details and the underlying exception, if any.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a keystore error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class EmptyInputError(KeystoreError):
    """Empty raw key, password or account name."""

    def __init__(self, message: str = "Empty input",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.EMPTY_INPUT, details, cause)


class AlreadyEncryptedError(KeystoreError):
    """Encrypt called on a record or account that is already encrypted."""

    def __init__(self, message: str = "Already encrypted",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.ALREADY_ENCRYPTED, details, cause)


class NotEncryptedError(KeystoreError):
    """Decrypt called on a record or account that holds no ciphertext."""

    def __init__(self, message: str = "Not encrypted",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NOT_ENCRYPTED, details, cause)


class KeyLockedError(KeystoreError):
    """The plaintext key is not available; decrypt the account first."""

    def __init__(self, message: str = "Key pair is locked",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.KEY_LOCKED, details, cause)


class WrongPasswordError(KeystoreError):
    """MAC verification failed during decryption."""

    def __init__(self, message: str = "Wrong password",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.WRONG_PASSWORD, details, cause)


class MalformedRecordError(KeystoreError):
    """Bad salt/ciphertext length, undecodable text or invalid account file."""

    def __init__(self, message: str = "Malformed record",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.MALFORMED_RECORD, details, cause)


class UnknownRoleError(KeystoreError):
    """No key pair is stored under the requested role label."""

    def __init__(self, message: str = "Unknown role",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.UNKNOWN_ROLE, details, cause)


class NotFoundError(KeystoreError):
    """Account file does not exist."""

    def __init__(self, message: str = "Account not found",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NOT_FOUND, details, cause)


class StoreIOError(KeystoreError):
    """Directory creation, rename, read or write failure."""

    def __init__(self, message: str = "Store I/O failure",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.STORE_IO_FAILURE, details, cause)


class PermissionOrOSError(KeystoreError):
    """Underlying filesystem error not covered by StoreIOError."""

    def __init__(self, message: str = "Filesystem error",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.PERMISSION_OR_OS_FAILURE, details, cause)


class ErrorHandler:
    """
    Utility class for categorizing errors.
    """

    @staticmethod
    def is_user_error(error: Exception) -> bool:
        """
        Check if an error is caused by user input rather than the environment.

        Args:
            error: Exception to check

        Returns:
            True if the error should be reported without a traceback
        """
        if isinstance(error, KeystoreError):
            return error.code not in (ErrorCode.UNKNOWN, ErrorCode.INTERNAL)
        return False

    @staticmethod
    def is_storage_error(error: Exception) -> bool:
        """Check if an error originates from the filesystem."""
        if isinstance(error, KeystoreError):
            return error.code in (ErrorCode.STORE_IO_FAILURE, ErrorCode.PERMISSION_OR_OS_FAILURE)
        return isinstance(error, OSError)


__all__ = [
    "ErrorCode",
    "KeystoreError",
    "EmptyInputError",
    "AlreadyEncryptedError",
    "NotEncryptedError",
    "KeyLockedError",
    "WrongPasswordError",
    "MalformedRecordError",
    "UnknownRoleError",
    "NotFoundError",
    "StoreIOError",
    "PermissionOrOSError",
    "ErrorHandler",
]
