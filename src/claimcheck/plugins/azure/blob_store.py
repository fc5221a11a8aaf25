# src/claimcheck/plugins/azure/blob_store.py
"""Azure Blob Storage object-store gateway.

Maps the claim-check addressing scheme onto Azure:
    namespace -> storage account name
    container -> blob container
    key       -> blob name

Two-tier trust model:
    - Azure Blob SDK calls = EXTERNAL SYSTEM -> wrap with try/except, report status
    - Our internal state = OUR CODE -> let it crash
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from azure.core.exceptions import HttpResponseError, ServiceRequestError, ServiceResponseError

from claimcheck.contracts import NO_RESPONSE, GatewayResponse
from claimcheck.core.logging import get_logger
from claimcheck.plugins.azure.auth import AzureAuthConfig

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient

logger = get_logger(__name__)

# Put Blob answers 201 Created, Get Blob answers 200 OK
_PUT_OK = 201
_GET_OK = 200
_NAMESPACE_OK = 200


def _error_response(e: Exception) -> GatewayResponse[None]:
    if isinstance(e, HttpResponseError) and e.status_code is not None:
        return GatewayResponse(status=e.status_code, detail=e.message or str(e))
    return GatewayResponse(status=NO_RESPONSE, detail=f"{type(e).__name__}: {e}")


class AzureBlobObjectStore:
    """ObjectStoreGateway backed by one Azure storage account.

    Args:
        auth_config: Validated Azure credentials
        timeout_seconds: Connect and read timeout for every call
    """

    def __init__(self, auth_config: AzureAuthConfig, *, timeout_seconds: float = 60.0) -> None:
        self._auth_config = auth_config
        self._timeout_seconds = timeout_seconds
        self._service_client: BlobServiceClient | None = None

    def _get_service_client(self) -> BlobServiceClient:
        """Build the client on first use.

        Raises:
            AzureConfigError: If the SDK rejects the configured credentials
        """
        if self._service_client is None:
            self._service_client = self._auth_config.create_blob_service_client(
                connection_timeout=self._timeout_seconds,
                read_timeout=self._timeout_seconds,
            )
        return self._service_client

    def _check_namespace(self, namespace: str) -> GatewayResponse[None] | None:
        account_name = self._get_service_client().account_name
        if namespace != account_name:
            return GatewayResponse(status=404, detail=f"namespace {namespace!r} is not storage account {account_name!r}")
        return None

    def resolve_namespace(self, compartment_id: str) -> GatewayResponse[str]:
        """The namespace of an Azure store is its account name; compartment_id is unused."""
        try:
            account_name = self._get_service_client().account_name
        except (HttpResponseError, ServiceRequestError, ServiceResponseError) as e:
            return _error_response(e)  # type: ignore[return-value]
        if not account_name:
            return GatewayResponse(status=NO_RESPONSE, detail="client has no storage account name")
        return GatewayResponse(status=_NAMESPACE_OK, data=account_name)

    def put(self, namespace: str, container: str, key: str, data: bytes) -> GatewayResponse[None]:
        mismatch = self._check_namespace(namespace)
        if mismatch is not None:
            return mismatch

        start_time = time.perf_counter()
        try:
            blob_client = self._get_service_client().get_blob_client(container=container, blob=key)
            blob_client.upload_blob(data, overwrite=True)
        except (HttpResponseError, ServiceRequestError, ServiceResponseError) as e:
            logger.debug("upload_blob failed", container=container, key=key, error=str(e))
            return _error_response(e)

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug("upload_blob", container=container, key=key, size_bytes=len(data), latency_ms=round(latency_ms, 1))
        return GatewayResponse(status=_PUT_OK)

    def get(self, namespace: str, container: str, key: str) -> GatewayResponse[bytes]:
        mismatch = self._check_namespace(namespace)
        if mismatch is not None:
            return mismatch  # type: ignore[return-value]

        start_time = time.perf_counter()
        try:
            blob_client = self._get_service_client().get_blob_client(container=container, blob=key)
            content = blob_client.download_blob().readall()
        except (HttpResponseError, ServiceRequestError, ServiceResponseError) as e:
            logger.debug("download_blob failed", container=container, key=key, error=str(e))
            return _error_response(e)  # type: ignore[return-value]

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug("download_blob", container=container, key=key, size_bytes=len(content), latency_ms=round(latency_ms, 1))
        return GatewayResponse(status=_GET_OK, data=content)
