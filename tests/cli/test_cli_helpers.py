# tests/cli/test_cli_helpers.py
"""Tests for gateway construction from validated settings."""

from pathlib import Path
from unittest.mock import patch

import pytest


class TestBuildObjectStore:
    def test_filesystem(self, tmp_path: Path) -> None:
        from claimcheck.cli_helpers import build_object_store
        from claimcheck.core.config import FilesystemObjectStoreSettings
        from claimcheck.plugins.local.filesystem_store import FilesystemObjectStore

        store = build_object_store(FilesystemObjectStoreSettings(base_path=tmp_path, namespace="ns1"))

        assert isinstance(store, FilesystemObjectStore)
        assert store.namespace == "ns1"

    def test_azure(self) -> None:
        from claimcheck.cli_helpers import build_object_store
        from claimcheck.core.config import AzureObjectStoreSettings
        from claimcheck.plugins.azure.auth import AzureAuthConfig
        from claimcheck.plugins.azure.blob_store import AzureBlobObjectStore

        settings = AzureObjectStoreSettings(auth=AzureAuthConfig(connection_string="AccountName=test;AccountKey=key"))
        assert isinstance(build_object_store(settings), AzureBlobObjectStore)

    def test_oci_loads_profile(self) -> None:
        from claimcheck.cli_helpers import build_object_store
        from claimcheck.core.config import OciObjectStoreSettings

        with (
            patch("claimcheck.plugins.oci.auth.load_oci_config", return_value={"region": "us-ashburn-1"}) as load,
            patch("claimcheck.plugins.oci.object_storage.OciObjectStore") as store_cls,
        ):
            build_object_store(OciObjectStoreSettings(profile="PROD", timeout_seconds=5))

        load.assert_called_once_with("~/.oci/config", "PROD")
        store_cls.assert_called_once_with({"region": "us-ashburn-1"}, timeout_seconds=5)


class TestBuildStream:
    def test_sqlite(self, tmp_path: Path) -> None:
        from claimcheck.cli_helpers import build_stream
        from claimcheck.core.config import ConnectionSettings, SqliteStreamSettings
        from claimcheck.plugins.local.sqlite_stream import SqliteStreamGateway

        stream = build_stream(
            SqliteStreamSettings(url=f"sqlite:///{tmp_path / 's.db'}"),
            ConnectionSettings(compartment_id="c", stream_id="s"),
        )
        assert isinstance(stream, SqliteStreamGateway)
        stream.close()

    def test_oci_passes_endpoint(self) -> None:
        from claimcheck.cli_helpers import build_stream
        from claimcheck.core.config import ConnectionSettings, OciStreamSettings

        with (
            patch("claimcheck.plugins.oci.auth.load_oci_config", return_value={}),
            patch("claimcheck.plugins.oci.streaming.OciStream") as stream_cls,
        ):
            build_stream(OciStreamSettings(), ConnectionSettings(compartment_id="c", stream_id="s", stream_endpoint="https://e"))

        stream_cls.assert_called_once_with({}, endpoint="https://e", timeout_seconds=60.0)

    def test_oci_without_endpoint_rejected(self) -> None:
        from claimcheck.cli_helpers import build_stream
        from claimcheck.core.config import ConnectionSettings, OciStreamSettings

        with pytest.raises(ValueError, match="stream_endpoint"):
            build_stream(OciStreamSettings(), ConnectionSettings(compartment_id="c", stream_id="s"))
