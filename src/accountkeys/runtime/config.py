"""
Keystore configuration.

Scrypt cost parameters and account store settings, with environment
variable overrides for the CLI.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import KeystoreError, ErrorCode


# Environment variables read by KeystoreConfig.from_env()
ENV_ACCOUNT_DIR = "ACCOUNTKEYS_DIR"
ENV_SCRYPT_N = "ACCOUNTKEYS_SCRYPT_N"
ENV_SCRYPT_R = "ACCOUNTKEYS_SCRYPT_R"
ENV_SCRYPT_P = "ACCOUNTKEYS_SCRYPT_P"

DEFAULT_ACCOUNT_DIR = Path.home() / ".accountkeys" / "accounts"


class ScryptParams(BaseModel):
    """
    Scrypt key derivation cost parameters.

    The defaults (N=32768, r=8, p=1) cost roughly 32 MB of memory per guess.
    The derived key is always 32 bytes: 16 for AES, 16 for the MAC.
    """
    n: int = Field(default=32768, ge=2, description="CPU/memory cost, power of two")
    r: int = Field(default=8, ge=1, description="Block size")
    p: int = Field(default=1, ge=1, description="Parallelization")
    length: int = Field(default=32, ge=32, le=32, description="Derived key length")

    model_config = {"frozen": True}

    @field_validator('n')
    @classmethod
    def validate_n(cls, v: int) -> int:
        """N must be a power of two."""
        if v & (v - 1):
            raise ValueError(f"scrypt N must be a power of two, got {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"n": self.n, "r": self.r, "p": self.p, "length": self.length}


DEFAULT_SCRYPT = ScryptParams()


class KeystoreConfig(BaseModel):
    """Settings for a file-backed account store."""
    account_dir: Path = Field(default=DEFAULT_ACCOUNT_DIR, description="Directory holding <name>.json files")
    backup_dir_name: str = Field(default="backup", min_length=1, description="Backup subdirectory name")
    dir_mode: int = Field(default=0o700, ge=0, le=0o777)
    file_mode: int = Field(default=0o400, ge=0, le=0o777)
    scrypt: ScryptParams = Field(default_factory=ScryptParams)

    @field_validator('account_dir', mode='before')
    @classmethod
    def validate_account_dir(cls, v: Any) -> Path:
        """Expand ~ in the account directory."""
        return Path(v).expanduser()

    @property
    def backup_dir(self) -> Path:
        """Directory that receives overwritten account files."""
        return self.account_dir / self.backup_dir_name

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> KeystoreConfig:
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            **overrides: Explicit values that win over the environment

        Raises:
            KeystoreError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        if env.get(ENV_ACCOUNT_DIR):
            values["account_dir"] = env[ENV_ACCOUNT_DIR]

        scrypt: Dict[str, Any] = {}
        for field_name, var in (("n", ENV_SCRYPT_N), ("r", ENV_SCRYPT_R), ("p", ENV_SCRYPT_P)):
            if env.get(var):
                scrypt[field_name] = env[var]
        if scrypt:
            values["scrypt"] = scrypt

        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise KeystoreError(f"Invalid keystore configuration: {e}", ErrorCode.INTERNAL, cause=e) from e


__all__ = [
    "ScryptParams",
    "KeystoreConfig",
    "DEFAULT_SCRYPT",
    "DEFAULT_ACCOUNT_DIR",
    "ENV_ACCOUNT_DIR",
    "ENV_SCRYPT_N",
    "ENV_SCRYPT_R",
    "ENV_SCRYPT_P",
]
