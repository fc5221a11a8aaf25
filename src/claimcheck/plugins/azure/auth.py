# src/claimcheck/plugins/azure/auth.py
"""Azure authentication configuration for the Azure Blob object store.

Supports four authentication methods (mutually exclusive):
1. Connection string - Simple connection string auth
2. SAS token - Shared Access Signature token with account_url
3. Managed Identity - For Azure-hosted workloads
4. Service Principal - For automated/CI scenarios

IMPORTANT: Connection strings, SAS tokens and service principal secrets
should be passed via environment variables (${VAR} in settings files),
not hardcoded in configuration files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self, cast

from pydantic import BaseModel, model_validator

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient

_AUTH_CHOICES = (
    "connection_string, "
    "sas_token + account_url, "
    "managed identity (use_managed_identity + account_url), or "
    "service principal (tenant_id + client_id + client_secret + account_url)"
)


class AzureConfigError(Exception):
    """Raised when a BlobServiceClient cannot be built from the configured credentials."""

    pass


def _is_set(value: str | None) -> bool:
    """Whitespace-only strings count as unset, matching validation."""
    return value is not None and bool(value.strip())


class AzureAuthConfig(BaseModel):
    """Azure authentication configuration.

    Example configurations:

        # Option 1: Connection string (simplest)
        connection_string: "${AZURE_STORAGE_CONNECTION_STRING}"

        # Option 2: SAS token
        sas_token: "${AZURE_STORAGE_SAS_TOKEN}"
        account_url: "https://mystorageaccount.blob.core.windows.net"

        # Option 3: Managed Identity
        use_managed_identity: true
        account_url: "https://mystorageaccount.blob.core.windows.net"

        # Option 4: Service Principal
        tenant_id: "${AZURE_TENANT_ID}"
        client_id: "${AZURE_CLIENT_ID}"
        client_secret: "${AZURE_CLIENT_SECRET}"
        account_url: "https://mystorageaccount.blob.core.windows.net"
    """

    model_config = {"extra": "forbid", "frozen": True}

    connection_string: str | None = None
    sas_token: str | None = None
    use_managed_identity: bool = False
    account_url: str | None = None
    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None

    @model_validator(mode="after")
    def validate_auth_method(self) -> Self:
        """Ensure exactly one auth method is configured.

        Raises:
            ValueError: If zero or multiple auth methods are configured,
                or a method is only partially configured.
        """
        has_account_url = _is_set(self.account_url)
        has_conn_string = _is_set(self.connection_string)
        has_sas_token = _is_set(self.sas_token) and has_account_url
        has_managed_identity = self.use_managed_identity and has_account_url
        sp_fields = {"tenant_id": self.tenant_id, "client_id": self.client_id, "client_secret": self.client_secret}
        has_service_principal = all(_is_set(v) for v in sp_fields.values()) and has_account_url

        active_count = sum([has_conn_string, has_sas_token, has_managed_identity, has_service_principal])

        if _is_set(self.sas_token) and not has_account_url:
            raise ValueError("SAS token auth requires account_url. Example: https://mystorageaccount.blob.core.windows.net")
        if self.use_managed_identity and not has_account_url:
            raise ValueError("Managed Identity auth requires account_url. Example: https://mystorageaccount.blob.core.windows.net")

        sp_present = [name for name, value in sp_fields.items() if value is not None]
        if 0 < len(sp_present) < len(sp_fields):
            missing = [name for name, value in sp_fields.items() if value is None]
            if not has_account_url:
                missing.append("account_url")
            raise ValueError(f"Service Principal auth requires all fields. Missing: {', '.join(missing)}")

        if active_count == 0:
            raise ValueError(f"No authentication method configured. Provide one of: {_AUTH_CHOICES}")
        if active_count > 1:
            raise ValueError(f"Multiple authentication methods configured. Provide exactly one of: {_AUTH_CHOICES}")

        return self

    @property
    def auth_method(self) -> str:
        """One of: 'connection_string', 'sas_token', 'managed_identity', 'service_principal'."""
        if _is_set(self.connection_string):
            return "connection_string"
        elif _is_set(self.sas_token):
            return "sas_token"
        elif self.use_managed_identity:
            return "managed_identity"
        else:
            return "service_principal"

    def create_blob_service_client(self, **client_kwargs: Any) -> BlobServiceClient:
        """Create BlobServiceClient using the configured auth method.

        Args:
            **client_kwargs: Passed through to the client (e.g. connection_timeout,
                read_timeout)

        Raises:
            AzureConfigError: If the SDK rejects the connection string or account URL
        """
        try:
            return self._build_client(**client_kwargs)
        except ValueError as e:
            raise AzureConfigError(f"Cannot create Azure Blob client ({self.auth_method}): {e}") from e

    def _build_client(self, **client_kwargs: Any) -> BlobServiceClient:
        from azure.storage.blob import BlobServiceClient

        method = self.auth_method
        if method == "connection_string":
            connection_string = cast(str, self.connection_string)
            return BlobServiceClient.from_connection_string(connection_string, **client_kwargs)

        account_url = cast(str, self.account_url)
        if method == "sas_token":
            sas_token = cast(str, self.sas_token)
            sas = sas_token if sas_token.startswith("?") else f"?{sas_token}"
            return BlobServiceClient(f"{account_url.rstrip('/')}{sas}", **client_kwargs)

        from azure.identity import ClientSecretCredential, DefaultAzureCredential

        if method == "managed_identity":
            return BlobServiceClient(account_url, credential=DefaultAzureCredential(), **client_kwargs)

        sp_credential = ClientSecretCredential(
            tenant_id=cast(str, self.tenant_id),
            client_id=cast(str, self.client_id),
            client_secret=cast(str, self.client_secret),
        )
        return BlobServiceClient(account_url, credential=sp_credential, **client_kwargs)
