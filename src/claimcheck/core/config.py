# src/claimcheck/core/config.py
"""
Configuration schema and loading for claimcheck.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Producer and consumer parameters are two variants of one tagged union
(``run.mode``), validated once at start-up, so a producer run can never
carry consumer-only fields and vice versa. Backends are tagged the same way
(``object_store.backend`` / ``stream.backend``).
"""

import os
import re
from pathlib import Path
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from claimcheck.contracts import (
    DEFAULT_BATCH_LIMIT,
    DEFAULT_GROUP,
    DEFAULT_INTERVAL_SECONDS,
    PollConfig,
    default_instance_name,
)
from claimcheck.plugins.azure.auth import AzureAuthConfig

DEFAULT_OCI_CONFIG_FILE = "~/.oci/config"
DEFAULT_OCI_PROFILE = "DEFAULT"
DEFAULT_TIMEOUT_SECONDS = 60.0


class ConnectionSettings(BaseModel):
    """Where the stream lives and which compartment scopes the namespace."""

    model_config = {"frozen": True, "extra": "forbid"}

    compartment_id: str = Field(..., min_length=1, description="Compartment the namespace is resolved for")
    stream_id: str = Field(..., min_length=1, description="Stream pointers are published to / read from")
    stream_endpoint: str | None = Field(default=None, description="Stream service endpoint (required for the oci stream backend)")


# === Object store backends ===


class OciObjectStoreSettings(BaseModel):
    """Oracle Cloud Object Storage, authenticated from an OCI config file."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: Literal["oci"] = "oci"
    config_file: str = DEFAULT_OCI_CONFIG_FILE
    profile: str = DEFAULT_OCI_PROFILE
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Per-call connect/read timeout")


class AzureObjectStoreSettings(BaseModel):
    """Azure Blob Storage. The storage account name is the namespace."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: Literal["azure"] = "azure"
    auth: AzureAuthConfig
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Per-call connect/read timeout")


class FilesystemObjectStoreSettings(BaseModel):
    """Local directory tree, for development and tests."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: Literal["filesystem"] = "filesystem"
    base_path: Path
    namespace: str = Field(default="local", min_length=1, pattern=r"^[^/]+$")


ObjectStoreSettings = Annotated[
    OciObjectStoreSettings | AzureObjectStoreSettings | FilesystemObjectStoreSettings,
    Field(discriminator="backend"),
]


# === Stream backends ===


class OciStreamSettings(BaseModel):
    """OCI Streaming, authenticated from an OCI config file."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: Literal["oci"] = "oci"
    config_file: str = DEFAULT_OCI_CONFIG_FILE
    profile: str = DEFAULT_OCI_PROFILE
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Per-call connect/read timeout")


class SqliteStreamSettings(BaseModel):
    """SQLite-backed stream, for development and tests."""

    model_config = {"frozen": True, "extra": "forbid"}

    backend: Literal["sqlite"] = "sqlite"
    url: str = Field(default="sqlite:///claimcheck-stream.db", description="SQLAlchemy connection URL")

    @field_validator("url")
    @classmethod
    def validate_sqlite_url(cls, v: str) -> str:
        if not v.startswith("sqlite"):
            raise ValueError(f"sqlite stream backend requires a sqlite:// URL, got {v!r}")
        return v


StreamSettings = Annotated[
    OciStreamSettings | SqliteStreamSettings,
    Field(discriminator="backend"),
]


# === Run modes ===


class ProducerSettings(BaseModel):
    """Publish one file to one container."""

    model_config = {"frozen": True, "extra": "forbid"}

    mode: Literal["producer"] = "producer"
    bucket: str = Field(..., min_length=1, pattern=r"^[^/]+$", description="Bucket/container the payload is stored in")
    file_path: Path


class ConsumerSettings(BaseModel):
    """Redeem claim checks from the stream until stopped."""

    model_config = {"frozen": True, "extra": "forbid"}

    mode: Literal["consumer"] = "consumer"
    group: str = Field(default=DEFAULT_GROUP, min_length=1)
    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, gt=0)
    instance_name: str | None = Field(default=None, min_length=1, description="Defaults to <hostname>-<pid>")
    destination: Path
    destination_kind: Literal["file", "directory"] = Field(
        default="file",
        description="file: every payload overwrites one path; directory: one file per object key",
    )
    batch_limit: int = Field(default=DEFAULT_BATCH_LIMIT, ge=1)
    on_malformed: Literal["fail", "skip"] = "fail"
    max_polls: int | None = Field(default=None, ge=1, description="Stop after N polls (unbounded if unset)")

    def to_poll_config(self) -> PollConfig:
        return PollConfig(
            group=self.group,
            interval_seconds=self.interval_seconds,
            instance_name=self.instance_name or default_instance_name(),
            batch_limit=self.batch_limit,
            on_malformed=self.on_malformed,
        )


RunSettings = Annotated[
    ProducerSettings | ConsumerSettings,
    Field(discriminator="mode"),
]


class ClaimCheckSettings(BaseModel):
    """Top-level settings for one claimcheck process."""

    model_config = {"frozen": True, "extra": "forbid"}

    connection: ConnectionSettings
    object_store: ObjectStoreSettings = Field(default_factory=OciObjectStoreSettings)
    stream: StreamSettings = Field(default_factory=OciStreamSettings)
    run: RunSettings

    @model_validator(mode="after")
    def validate_stream_endpoint(self) -> Self:
        """The OCI stream client cannot be built without its endpoint."""
        if self.stream.backend == "oci" and not self.connection.stream_endpoint:
            raise ValueError("connection.stream_endpoint is required when stream.backend is 'oci'")
        return self


# === Loading ===

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

# Dynaconf bookkeeping keys that are not settings
_DYNACONF_INTERNAL_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"})


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            if match.group(2) is not None:
                return match.group(2)
            # No env var and no default - keep original (validation will likely reject it)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    """Lowercase dict keys at every level (Dynaconf uppercases env-var keys)."""
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_raw_settings(config_path: Path) -> dict[str, Any]:
    """Load the unvalidated settings dict from YAML plus environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (CLAIMCHECK_*) - highest priority
    2. Config file (settings.yaml)

    Environment variable format: CLAIMCHECK_RUN__INTERVAL_SECONDS for nested keys.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CLAIMCHECK",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in _DYNACONF_INTERNAL_KEYS}
    return _expand_env_vars(_lower_keys(raw_config))


def load_settings(config_path: Path) -> ClaimCheckSettings:
    """Load and validate settings from a YAML file.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    return ClaimCheckSettings(**load_raw_settings(config_path))


def merge_overrides(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge overrides into base, ignoring override values that are None.

    Used to layer explicit CLI flags over a settings file.
    """
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict):
            current = merged.get(key)
            nested = merge_overrides(current if isinstance(current, dict) else {}, value)
            # An all-None override group must not create an empty section
            if nested:
                merged[key] = nested
        else:
            merged[key] = value
    return merged
