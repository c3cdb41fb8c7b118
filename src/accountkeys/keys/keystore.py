"""
Account storage.

Persists account records, one JSON file per account name, with
backup-on-overwrite semantics: an existing file is moved into the backup
directory before the new version is written.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
import logging
import os
import re
from pathlib import Path

from ..runtime.config import KeystoreConfig
from ..runtime.errors import (
    EmptyInputError,
    MalformedRecordError,
    NotFoundError,
    StoreIOError,
    PermissionOrOSError,
    KeystoreError,
)
from .account import AccountRecord

logger = logging.getLogger(__name__)

ACCOUNT_FILE_SUFFIX = ".json"

# <ISO-8601 UTC timestamp with microseconds>[-N]
BACKUP_STAMP_PATTERN = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}\+00:00(?:-\d+)?"


def validate_account_name(name: str) -> str:
    """
    Check that an account name can be used as a file name.

    Raises:
        EmptyInputError: If the name is empty
        MalformedRecordError: If the name contains a path separator or starts with a dot
    """
    if not name:
        raise EmptyInputError("Empty account name")
    if "/" in name or "\\" in name or name.startswith(".") or "\x00" in name:
        raise MalformedRecordError(f"Invalid account name: {name!r}")
    return name


def save_account_to(account: AccountRecord, path: Union[str, Path], mode: int = 0o400) -> None:
    """
    Write an account to a single file.

    The file is written under a temporary name and moved into place, then
    made read-only for the owner.

    Raises:
        StoreIOError: If the file cannot be written
    """
    path = Path(path)
    temp_path = path.with_name(f".{path.name}.tmp")
    logger.info(f"Saving keyfile of account {account.name} to {path}")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(account.to_json())
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except OSError as e:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise StoreIOError(f"Failed to write {path}", details={"path": str(path)}, cause=e) from e


def load_account_from(path: Union[str, Path]) -> AccountRecord:
    """
    Read an account from a single file.

    Raises:
        NotFoundError: If the file does not exist
        StoreIOError: If the file cannot be read
        MalformedRecordError: If the file is not a valid account
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFoundError(f"No key file at {path}", cause=e) from e
    except (OSError, UnicodeDecodeError) as e:
        raise StoreIOError(f"Failed to read {path}", details={"path": str(path)}, cause=e) from e
    return AccountRecord.from_json(text)


class AccountStore(ABC):
    """
    Abstract account store interface.

    Stores account records by name.
    """

    @abstractmethod
    def load_account(self, name: str) -> AccountRecord:
        """
        Load an account by name.

        Raises:
            NotFoundError: If no account is stored under name
            MalformedRecordError: If the stored data is not a valid account
        """
        pass

    @abstractmethod
    def save_account(self, account: AccountRecord) -> None:
        """Store an account under account.name, keeping the previous version as a backup."""
        pass

    @abstractmethod
    def delete_account(self, name: str) -> None:
        """
        Delete an account.

        Raises:
            NotFoundError: If no account is stored under name
        """
        pass

    @abstractmethod
    def list_accounts(self) -> List[AccountRecord]:
        """List every readable account."""
        pass

    @abstractmethod
    def has_account(self, name: str) -> bool:
        """Check if an account exists."""
        pass

    def get_account_count(self) -> int:
        """Get the number of readable accounts."""
        return len(self.list_accounts())


class MemoryAccountStore(AccountStore):
    """
    In-memory account store implementation.

    Keeps serialized accounts in a dict; nothing is persisted.
    """

    def __init__(self):
        self._blobs: Dict[str, str] = {}
        self._backups: Dict[str, List[str]] = {}

    def load_account(self, name: str) -> AccountRecord:
        blob = self._blobs.get(name)
        if blob is None:
            raise NotFoundError(f"Account {name} not found", details={"account": name})
        return AccountRecord.from_json(blob)

    def save_account(self, account: AccountRecord) -> None:
        name = validate_account_name(account.name)
        if name in self._blobs:
            self._backups.setdefault(name, []).append(self._blobs[name])
        self._blobs[name] = account.to_json()
        logger.debug(f"Stored account {name} in memory account store")

    def delete_account(self, name: str) -> None:
        if name not in self._blobs:
            raise NotFoundError(f"Account {name} not found", details={"account": name})
        del self._blobs[name]
        logger.debug(f"Deleted account {name} from memory account store")

    def list_accounts(self) -> List[AccountRecord]:
        return [AccountRecord.from_json(blob) for blob in self._blobs.values()]

    def has_account(self, name: str) -> bool:
        return name in self._blobs

    def list_backups(self, name: str) -> List[AccountRecord]:
        """Previous versions of an account, oldest first."""
        return [AccountRecord.from_json(blob) for blob in self._backups.get(name, [])]

    def __repr__(self) -> str:
        return f"MemoryAccountStore(count={len(self._blobs)})"


class FileAccountStore(AccountStore):
    """
    File-based account store implementation.

    Layout:
        <account_dir>/<name>.json
        <account_dir>/backup/<name>.<timestamp>.json
    """

    def __init__(self, account_dir: Union[str, Path, None] = None,
                 config: Optional[KeystoreConfig] = None):
        """
        Initialize file account store.

        Args:
            account_dir: Directory for account files (overrides config)
            config: Store settings (defaults to KeystoreConfig())
        """
        config = config or KeystoreConfig()
        if account_dir is not None:
            config = config.model_copy(update={"account_dir": Path(account_dir).expanduser()})
        self.config = config
        self.account_dir = config.account_dir
        self.backup_dir = config.backup_dir

    def _account_path(self, name: str) -> Path:
        return self.account_dir / f"{validate_account_name(name)}{ACCOUNT_FILE_SUFFIX}"

    def _ensure_dir(self, path: Path) -> None:
        try:
            path.mkdir(mode=self.config.dir_mode, parents=True, exist_ok=True)
        except OSError as e:
            raise StoreIOError(f"Failed to create directory {path}", details={"path": str(path)}, cause=e) from e

    def _backup_path(self, name: str) -> Path:
        timestamp = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        candidate = self.backup_dir / f"{name}.{timestamp}{ACCOUNT_FILE_SUFFIX}"
        counter = 1
        while candidate.exists():
            candidate = self.backup_dir / f"{name}.{timestamp}-{counter}{ACCOUNT_FILE_SUFFIX}"
            counter += 1
        return candidate

    def load_account(self, name: str) -> AccountRecord:
        path = self._account_path(name)
        if not path.is_file():
            raise NotFoundError(
                f"Account is not imported at {path}. "
                f"Use 'accountkeys import {name} <private-key>' to import it",
                details={"account": name, "path": str(path)}
            )
        return load_account_from(path)

    def save_account(self, account: AccountRecord) -> None:
        path = self._account_path(account.name)
        self._ensure_dir(self.account_dir)

        backup_path = None
        if path.exists():
            self._ensure_dir(self.backup_dir)
            backup_path = self._backup_path(account.name)
            logger.info(f"Backing up {path} to {backup_path}")
            try:
                os.rename(path, backup_path)
            except OSError as e:
                raise StoreIOError(
                    f"Failed to back up {path}",
                    details={"path": str(path), "backup": str(backup_path)},
                    cause=e
                ) from e

        try:
            save_account_to(account, path, self.config.file_mode)
        except StoreIOError as e:
            if backup_path is not None:
                e.message = f"{e.message}; previous version kept at {backup_path}"
                e.details["backup"] = str(backup_path)
            raise

    def delete_account(self, name: str) -> None:
        path = self._account_path(name)
        try:
            os.remove(path)
        except FileNotFoundError as e:
            raise NotFoundError(f"Account {name} not found at {path}",
                                details={"account": name}, cause=e) from e
        except OSError as e:
            raise PermissionOrOSError(f"Failed to remove {path}", details={"path": str(path)}, cause=e) from e
        logger.info(f"File {path} has been removed")

    def list_accounts(self) -> List[AccountRecord]:
        try:
            entries = list(os.scandir(self.account_dir))
        except FileNotFoundError:
            logger.debug(f"Account directory {self.account_dir} does not exist")
            return []
        except OSError as e:
            raise StoreIOError(f"Failed to list {self.account_dir}", cause=e) from e

        accounts = []
        for entry in entries:
            if not entry.name.endswith(ACCOUNT_FILE_SUFFIX) or entry.name.startswith("."):
                continue
            if not entry.is_file():
                continue
            try:
                accounts.append(load_account_from(entry.path))
            except KeystoreError as e:
                logger.warning(f"Loading account failed {entry.path}: {e}")
        return accounts

    def has_account(self, name: str) -> bool:
        return self._account_path(name).is_file()

    def list_backups(self, name: str) -> List[Path]:
        """Backup files of an account, oldest first."""
        validate_account_name(name)
        if not self.backup_dir.is_dir():
            return []
        pattern = re.compile(
            re.escape(f"{name}.") + BACKUP_STAMP_PATTERN + re.escape(ACCOUNT_FILE_SUFFIX)
        )
        backups = [p for p in self.backup_dir.iterdir() if pattern.fullmatch(p.name)]
        return sorted(backups, key=lambda p: p.stat().st_mtime_ns)

    def __repr__(self) -> str:
        return f"FileAccountStore(path='{self.account_dir}')"


__all__ = [
    "AccountStore",
    "MemoryAccountStore",
    "FileAccountStore",
    "save_account_to",
    "load_account_from",
    "validate_account_name",
]
