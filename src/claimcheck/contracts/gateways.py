# src/claimcheck/contracts/gateways.py
"""Gateway protocols for the external object store and stream services.

These define the only surface the producer and consumer need from the
outside world:
- plugins/oci (Oracle Cloud Object Storage + Streaming)
- plugins/azure (Azure Blob Storage, object store only)
- plugins/local (filesystem object store, SQLite stream)

Gateways report failures through the status on their responses and never
raise for a remote-side failure. Translating a status into a typed error is
the caller's job (see engine/producer.py and engine/consumer.py).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

# Status reported when the call failed before any HTTP status was received
NO_RESPONSE = 0


def is_success(status: int) -> bool:
    return 200 <= status < 300


@dataclass(frozen=True, slots=True)
class GatewayResponse(Generic[T]):
    """Status plus optional payload from a single gateway call."""

    status: int
    data: T | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return is_success(self.status)


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """One batch of stream messages and the cursor token for the next fetch."""

    status: int
    messages: Sequence[bytes] = field(default_factory=tuple)
    next_cursor: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return is_success(self.status)


@runtime_checkable
class ObjectStoreGateway(Protocol):
    """Put/get byte payloads addressed by (namespace, container, key)."""

    def resolve_namespace(self, compartment_id: str) -> GatewayResponse[str]:
        """Resolve the storage-account-scoped namespace.

        Args:
            compartment_id: Compartment (or equivalent scope) to resolve for

        Returns:
            Response whose data is the namespace string
        """
        ...

    def put(self, namespace: str, container: str, key: str, data: bytes) -> GatewayResponse[None]:
        """Store data, overwriting any existing object at the same location."""
        ...

    def get(self, namespace: str, container: str, key: str) -> GatewayResponse[bytes]:
        """Retrieve the object's bytes. Missing objects report status 404."""
        ...


@runtime_checkable
class StreamGateway(Protocol):
    """Append-only ordered message channel with consumer-group cursors."""

    def append(self, stream_id: str, messages: Sequence[bytes]) -> GatewayResponse[None]:
        """Append messages in order. Any per-message failure fails the call."""
        ...

    def create_cursor(self, stream_id: str, group: str, instance: str) -> GatewayResponse[str]:
        """Create a group cursor starting at the latest position, committing on get.

        Returns:
            Response whose data is the opaque cursor token
        """
        ...

    def fetch(self, stream_id: str, cursor: str, limit: int) -> FetchResponse:
        """Fetch up to ``limit`` messages and the next cursor token."""
        ...
