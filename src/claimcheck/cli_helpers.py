# src/claimcheck/cli_helpers.py
"""CLI helper functions for building gateways from validated settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimcheck.core.config import (
    AzureObjectStoreSettings,
    ConnectionSettings,
    FilesystemObjectStoreSettings,
    OciObjectStoreSettings,
    OciStreamSettings,
    SqliteStreamSettings,
)

if TYPE_CHECKING:
    from claimcheck.contracts import ObjectStoreGateway, StreamGateway
    from claimcheck.core.config import ObjectStoreSettings, StreamSettings


def build_object_store(settings: ObjectStoreSettings) -> ObjectStoreGateway:
    """Instantiate the object-store gateway selected by ``settings.backend``.

    SDK modules are imported only for the backend in use.

    Raises:
        OciConfigError: If the OCI config profile cannot be loaded
        AzureConfigError: Later, on first use, if the Azure credentials are rejected by the SDK
    """
    if isinstance(settings, OciObjectStoreSettings):
        from claimcheck.plugins.oci.auth import load_oci_config
        from claimcheck.plugins.oci.object_storage import OciObjectStore

        return OciObjectStore(load_oci_config(settings.config_file, settings.profile), timeout_seconds=settings.timeout_seconds)

    if isinstance(settings, AzureObjectStoreSettings):
        from claimcheck.plugins.azure.blob_store import AzureBlobObjectStore

        return AzureBlobObjectStore(settings.auth, timeout_seconds=settings.timeout_seconds)

    if isinstance(settings, FilesystemObjectStoreSettings):
        from claimcheck.plugins.local.filesystem_store import FilesystemObjectStore

        return FilesystemObjectStore(settings.base_path.expanduser(), namespace=settings.namespace)

    # Unreachable due to the discriminated union, but satisfies static analysis
    raise AssertionError(f"Unsupported object store backend: {settings!r}")


def build_stream(settings: StreamSettings, connection: ConnectionSettings) -> StreamGateway:
    """Instantiate the stream gateway selected by ``settings.backend``.

    Raises:
        OciConfigError: If the OCI config profile cannot be loaded
        StreamDatabaseError: If the SQLite stream database cannot be opened
    """
    if isinstance(settings, OciStreamSettings):
        from claimcheck.plugins.oci.auth import load_oci_config
        from claimcheck.plugins.oci.streaming import OciStream

        # ClaimCheckSettings guarantees stream_endpoint for the oci backend
        if connection.stream_endpoint is None:
            raise ValueError("stream_endpoint is required for the oci stream backend")
        return OciStream(
            load_oci_config(settings.config_file, settings.profile),
            endpoint=connection.stream_endpoint,
            timeout_seconds=settings.timeout_seconds,
        )

    if isinstance(settings, SqliteStreamSettings):
        from claimcheck.plugins.local.sqlite_stream import SqliteStreamGateway

        return SqliteStreamGateway(settings.url)

    raise AssertionError(f"Unsupported stream backend: {settings!r}")
