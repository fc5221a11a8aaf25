# tests/plugins/azure/test_azure_auth.py
"""Tests for Azure authentication configuration."""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from claimcheck.plugins.azure.auth import AzureAuthConfig

TEST_CONNECTION_STRING = "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=key"
TEST_ACCOUNT_URL = "https://mystorageaccount.blob.core.windows.net"
TEST_TENANT_ID = "00000000-0000-0000-0000-000000000001"
TEST_CLIENT_ID = "00000000-0000-0000-0000-000000000002"
TEST_CLIENT_SECRET = "test-secret-value"


class TestAzureAuthValidation:
    def test_connection_string(self) -> None:
        assert AzureAuthConfig(connection_string=TEST_CONNECTION_STRING).auth_method == "connection_string"

    def test_sas_token(self) -> None:
        config = AzureAuthConfig(sas_token="sv=2022&sig=abc", account_url=TEST_ACCOUNT_URL)
        assert config.auth_method == "sas_token"

    def test_managed_identity(self) -> None:
        config = AzureAuthConfig(use_managed_identity=True, account_url=TEST_ACCOUNT_URL)
        assert config.auth_method == "managed_identity"

    def test_service_principal(self) -> None:
        config = AzureAuthConfig(
            tenant_id=TEST_TENANT_ID,
            client_id=TEST_CLIENT_ID,
            client_secret=TEST_CLIENT_SECRET,
            account_url=TEST_ACCOUNT_URL,
        )
        assert config.auth_method == "service_principal"

    def test_no_method_rejected(self) -> None:
        with pytest.raises(ValidationError, match="No authentication method"):
            AzureAuthConfig()

    def test_whitespace_connection_string_is_unset(self) -> None:
        with pytest.raises(ValidationError, match="No authentication method"):
            AzureAuthConfig(connection_string="   ")

    def test_multiple_methods_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Multiple authentication methods"):
            AzureAuthConfig(connection_string=TEST_CONNECTION_STRING, use_managed_identity=True, account_url=TEST_ACCOUNT_URL)

    def test_managed_identity_requires_account_url(self) -> None:
        with pytest.raises(ValidationError, match="account_url"):
            AzureAuthConfig(use_managed_identity=True)

    def test_sas_requires_account_url(self) -> None:
        with pytest.raises(ValidationError, match="account_url"):
            AzureAuthConfig(sas_token="sv=2022&sig=abc")

    def test_partial_service_principal_lists_missing_fields(self) -> None:
        with pytest.raises(ValidationError, match="client_secret"):
            AzureAuthConfig(tenant_id=TEST_TENANT_ID, client_id=TEST_CLIENT_ID, account_url=TEST_ACCOUNT_URL)

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            AzureAuthConfig(connection_string=TEST_CONNECTION_STRING, container="nope")  # type: ignore[call-arg]


class TestCreateBlobServiceClient:
    def test_connection_string_passes_client_kwargs(self) -> None:
        with patch("azure.storage.blob.BlobServiceClient") as client_cls:
            AzureAuthConfig(connection_string=TEST_CONNECTION_STRING).create_blob_service_client(read_timeout=5)

        client_cls.from_connection_string.assert_called_once_with(TEST_CONNECTION_STRING, read_timeout=5)

    def test_sas_token_appended_to_url(self) -> None:
        with patch("azure.storage.blob.BlobServiceClient") as client_cls:
            AzureAuthConfig(sas_token="sv=2022&sig=abc", account_url=TEST_ACCOUNT_URL + "/").create_blob_service_client()

        client_cls.assert_called_once_with(f"{TEST_ACCOUNT_URL}?sv=2022&sig=abc")

    def test_managed_identity_uses_default_credential(self) -> None:
        credential = MagicMock()
        with (
            patch("azure.storage.blob.BlobServiceClient") as client_cls,
            patch("azure.identity.DefaultAzureCredential", return_value=credential),
        ):
            AzureAuthConfig(use_managed_identity=True, account_url=TEST_ACCOUNT_URL).create_blob_service_client()

        client_cls.assert_called_once_with(TEST_ACCOUNT_URL, credential=credential)

    def test_rejected_connection_string_raises_config_error(self) -> None:
        from claimcheck.plugins.azure.auth import AzureConfigError

        with patch("azure.storage.blob.BlobServiceClient") as client_cls:
            client_cls.from_connection_string.side_effect = ValueError("Connection string is either blank or malformed.")
            with pytest.raises(AzureConfigError, match="connection_string"):
                AzureAuthConfig(connection_string="garbage").create_blob_service_client()

    def test_malformed_connection_string_from_sdk(self) -> None:
        from claimcheck.plugins.azure.auth import AzureConfigError

        with pytest.raises(AzureConfigError, match="Cannot create Azure Blob client"):
            AzureAuthConfig(connection_string="garbage").create_blob_service_client()
