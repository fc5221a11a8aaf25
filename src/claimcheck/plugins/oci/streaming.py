# src/claimcheck/plugins/oci/streaming.py
"""OCI Streaming gateway.

Message values travel base64-encoded in the Streaming API; this gateway
encodes on append and decodes on fetch so callers only see raw bytes.

Group cursors are created with type LATEST and commit_on_get=True: the
service records the group's position as soon as it hands messages out.
"""

from __future__ import annotations

import base64
from collections.abc import Sequence
from typing import Any

import oci
from oci.streaming.models import CreateGroupCursorDetails, PutMessagesDetails, PutMessagesDetailsEntry

from claimcheck.contracts import FetchResponse, GatewayResponse
from claimcheck.core.logging import get_logger
from claimcheck.plugins.oci.auth import client_timeout
from claimcheck.plugins.oci.object_storage import OCI_CALL_ERRORS, service_error_response

logger = get_logger(__name__)

NEXT_CURSOR_HEADER = "opc-next-cursor"

# Reported when the HTTP call succeeded but some entries were rejected
PARTIAL_FAILURE_STATUS = 500


class OciStream:
    """StreamGateway backed by OCI Streaming.

    Args:
        config: Validated OCI SDK config dict
        endpoint: Stream messages endpoint (from the stream's details)
        timeout_seconds: Connect and read timeout for every call
        client: Pre-built client (tests inject a mock)
    """

    def __init__(
        self,
        config: dict[str, Any],
        *,
        endpoint: str,
        timeout_seconds: float = 60.0,
        client: oci.streaming.StreamClient | None = None,
    ) -> None:
        self._client = client or oci.streaming.StreamClient(
            config,
            service_endpoint=endpoint,
            timeout=client_timeout(timeout_seconds),
        )

    def append(self, stream_id: str, messages: Sequence[bytes]) -> GatewayResponse[None]:
        entries = [PutMessagesDetailsEntry(value=base64.b64encode(message).decode("ascii")) for message in messages]
        try:
            response = self._client.put_messages(stream_id, PutMessagesDetails(messages=entries))
        except OCI_CALL_ERRORS as e:
            return service_error_response(e)

        failures = response.data.failures or 0
        if failures:
            errors = [f"{entry.error}: {entry.error_message}" for entry in response.data.entries if entry.error]
            return GatewayResponse(
                status=PARTIAL_FAILURE_STATUS,
                detail=f"{failures} of {len(entries)} messages rejected ({'; '.join(errors)})",
            )
        logger.debug("put_messages", stream_id=stream_id, count=len(entries), status=response.status)
        return GatewayResponse(status=response.status)

    def create_cursor(self, stream_id: str, group: str, instance: str) -> GatewayResponse[str]:
        details = CreateGroupCursorDetails(
            group_name=group,
            instance_name=instance,
            type=CreateGroupCursorDetails.TYPE_LATEST,
            commit_on_get=True,
        )
        try:
            response = self._client.create_group_cursor(stream_id, details)
        except OCI_CALL_ERRORS as e:
            return service_error_response(e)
        return GatewayResponse(status=response.status, data=response.data.value)

    def fetch(self, stream_id: str, cursor: str, limit: int) -> FetchResponse:
        try:
            response = self._client.get_messages(stream_id, cursor, limit=limit)
        except OCI_CALL_ERRORS as e:
            failed = service_error_response(e)
            return FetchResponse(status=failed.status, detail=failed.detail)

        messages = tuple(base64.b64decode(message.value or "") for message in response.data)
        return FetchResponse(
            status=response.status,
            messages=messages,
            next_cursor=response.headers.get(NEXT_CURSOR_HEADER),
        )
