"""Unified configuration via pydantic-settings.

Merge/rebase and dry-run are not settings: they are command-line flags
turned into a SyncPolicy once per invocation.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BranchSyncConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BRANCHSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    repo_path: Path = Path(".")

    # Git
    git_executable: str = "git"
    git_timeout_seconds: float | None = None  # None waits for git indefinitely

    # Logging
    log_level: str = "WARNING"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("repo_path")
    @classmethod
    def resolve_repo_path(cls, v: Path) -> Path:
        resolved = v.expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"repository directory does not exist: {resolved}")
        return resolved

    @field_validator("git_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("git_timeout_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level
