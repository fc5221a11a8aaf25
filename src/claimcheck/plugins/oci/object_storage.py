# src/claimcheck/plugins/oci/object_storage.py
"""OCI Object Storage gateway.

Two-tier trust model:
    - OCI SDK calls = EXTERNAL SYSTEM -> wrap with try/except, report status
    - Our internal state = OUR CODE -> let it crash

The SDK raises ServiceError for non-2xx responses; its status is reported
as-is. Transport failures (connection refused, timeouts) never produce an
HTTP status and are reported as NO_RESPONSE.
"""

from __future__ import annotations

from typing import Any

import oci

from claimcheck.contracts import NO_RESPONSE, GatewayResponse
from claimcheck.core.logging import get_logger
from claimcheck.plugins.oci.auth import client_timeout

logger = get_logger(__name__)


def service_error_response(e: Exception) -> GatewayResponse[Any]:
    """Convert an OCI SDK exception into a status-bearing response."""
    if isinstance(e, oci.exceptions.ServiceError):
        return GatewayResponse(status=e.status, detail=f"{e.code}: {e.message}")
    return GatewayResponse(status=NO_RESPONSE, detail=f"{type(e).__name__}: {e}")


# Raised by the SDK for service-side failures and for transport failures
OCI_CALL_ERRORS: tuple[type[Exception], ...] = (
    oci.exceptions.ServiceError,
    oci.exceptions.RequestException,
    oci.exceptions.ConnectTimeout,
)


class OciObjectStore:
    """ObjectStoreGateway backed by OCI Object Storage.

    Args:
        config: Validated OCI SDK config dict
        timeout_seconds: Connect and read timeout for every call
        client: Pre-built client (tests inject a mock)
    """

    def __init__(
        self,
        config: dict[str, Any],
        *,
        timeout_seconds: float = 60.0,
        client: oci.object_storage.ObjectStorageClient | None = None,
    ) -> None:
        self._client = client or oci.object_storage.ObjectStorageClient(config, timeout=client_timeout(timeout_seconds))

    def resolve_namespace(self, compartment_id: str) -> GatewayResponse[str]:
        try:
            response = self._client.get_namespace(compartment_id=compartment_id)
        except OCI_CALL_ERRORS as e:
            return service_error_response(e)
        return GatewayResponse(status=response.status, data=response.data)

    def put(self, namespace: str, container: str, key: str, data: bytes) -> GatewayResponse[None]:
        try:
            response = self._client.put_object(
                namespace_name=namespace,
                bucket_name=container,
                object_name=key,
                put_object_body=data,
            )
        except OCI_CALL_ERRORS as e:
            return service_error_response(e)
        logger.debug("put_object", bucket=container, key=key, size_bytes=len(data), status=response.status)
        return GatewayResponse(status=response.status)

    def get(self, namespace: str, container: str, key: str) -> GatewayResponse[bytes]:
        try:
            response = self._client.get_object(
                namespace_name=namespace,
                bucket_name=container,
                object_name=key,
            )
            # response.data wraps the streamed HTTP body
            content = response.data.content
        except OCI_CALL_ERRORS as e:
            return service_error_response(e)
        logger.debug("get_object", bucket=container, key=key, size_bytes=len(content), status=response.status)
        return GatewayResponse(status=response.status, data=content)
