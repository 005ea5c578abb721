"""
Constants and configuration for Artwork Storage.
Centralizes token lifetimes, signing constants and storage configuration.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import os
import threading

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
)

# ============================================================================
# Project Paths
# ============================================================================

#: Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# ============================================================================
# Access Token Lifetimes
# ============================================================================

#: Lifetime of container-scoped upload tokens returned by provisioning.
CONTAINER_TOKEN_LIFETIME = timedelta(days=1)

#: Lifetime of object-scoped read tokens embedded in image URLs.
IMAGE_TOKEN_LIFETIME = timedelta(hours=2)

# ============================================================================
# Shared Access Signature Configuration
# ============================================================================

#: Signed resource for a whole container.
SAS_RESOURCE_CONTAINER = "c"

#: Signed resource for an individual blob/object.
SAS_RESOURCE_BLOB = "b"

#: Every permission letter in the order the storage service requires.
#: Permission strings must follow this order or signature validation fails.
SAS_PERMISSION_ORDER = "racwdxyltfmeopi"

#: All container operations (provisioning tokens).
SAS_PERMISSIONS_ALL = SAS_PERMISSION_ORDER

#: Read-only access (image listing tokens).
SAS_PERMISSIONS_READ = "r"

#: Timestamp format for signed start/expiry fields (UTC, second precision).
SAS_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

#: Service name used as the first segment of canonicalized resources.
SAS_SERVICE_BLOB = "blob"

# ============================================================================
# Container Naming Rules
# ============================================================================

#: Minimum container name length accepted by the storage service.
CONTAINER_NAME_MIN_LENGTH = 3

#: Maximum container name length accepted by the storage service.
CONTAINER_NAME_MAX_LENGTH = 63

#: Lowercase letters, digits and single hyphens; must start and end alphanumeric.
CONTAINER_NAME_PATTERN = r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9]))*$"

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Replacement text for signatures and keys in log output.
LOG_REDACTED = "[REDACTED]"

# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        PROJECT_ROOT / ".env",
        PROJECT_ROOT / f".env.{env_name}",
        PROJECT_ROOT / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


class Settings(BaseSettings):
    """Environment settings with validation and environment-specific file support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables (standard Docker/K8s behavior)
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)

    The account name and key may be omitted when the connection string carries
    them (``AccountName=...;AccountKey=...``). Key material is validated when a
    token is signed.

    ``DEBUG`` and ``LOG_DIR`` are read by the logging setup at import time, before
    settings are loaded.
    """

    # Environment identification
    app_env: Environment = Field(default="development", description="Application environment")

    # Blob storage account
    blob_storage_connection_string: str = Field(
        ...,
        description="Backend connection string used to reach the storage account",
        repr=False,
    )
    blob_storage_account_name: str | None = Field(
        default=None, description="Storage account name used in canonicalized SAS resources"
    )
    blob_storage_account_key: str | None = Field(
        default=None, description="Base64 shared key used to sign access tokens", repr=False
    )

    # Transport
    storage_request_timeout: float | None = Field(
        default=None,
        description="Deadline for a single backend call in seconds (None disables the deadline)",
    )

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority for environment-specific config.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings() constructor
        2. env_settings - Environment variables
        3. dotenv files - .env.local > .env.{APP_ENV} > .env (last-wins in list)
        """
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        return (init_settings, env_settings, dotenv_source)

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @field_validator("blob_storage_connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Reject blank connection strings."""
        if not v or not v.strip():
            raise ValueError("blob_storage_connection_string must not be empty")
        return v.strip()

    @field_validator("storage_request_timeout")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Deadline must be positive when set."""
        if v is not None and v <= 0:
            raise ValueError("storage_request_timeout must be greater than zero")
        return v

    @model_validator(mode="after")
    def validate_production_storage(self) -> Settings:
        """Refuse the emulator account outside development and test."""
        if self.app_env == "production" and "UseDevelopmentStorage=true" in self.blob_storage_connection_string:
            raise ValueError(
                "Configuration Error: development storage cannot be used in production.\n"
                "Set BLOB_STORAGE_CONNECTION_STRING to a real storage account in your .env.production file."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


# ============================================================================
# Settings Management (Thread-safe)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get the cached settings instance, loading it on first use.

        Raises:
            ValidationError: If required configuration is missing or invalid.
        """
        if self._instance is not None:
            return self._instance

        with self._lock:
            # Double-check after acquiring lock
            if self._instance is None:
                self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from the environment."""
        with self._lock:
            self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Clear cached settings instance."""
        with self._lock:
            self._instance = None


# Module-level singleton manager
_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get settings instance.

    This is the primary entry point for accessing application settings.
    Settings are validated on first access and cached for the process lifetime.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If required configuration is missing or invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from environment files.

    Returns:
        Fresh Settings instance loaded from current environment.
    """
    return _settings_manager.reload()


def clear_settings_cache() -> None:
    """Clear cached settings instance.

    Primarily useful for testing to ensure fresh settings on each test.
    """
    _settings_manager.clear()
