"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from
claimcheck.core.config.

Import patterns:
    # Contracts (lightweight, no heavy dependencies)
    from claimcheck.contracts import ClaimCheck, Cursor, StreamGateway

    # Settings classes (from core, pulls in pydantic/dynaconf)
    from claimcheck.core.config import ClaimCheckSettings
"""

from claimcheck.contracts.claim_check import (
    DEFAULT_BATCH_LIMIT,
    DEFAULT_GROUP,
    DEFAULT_INTERVAL_SECONDS,
    ClaimCheck,
    ConsumerResult,
    Cursor,
    MalformedPolicy,
    PollConfig,
    StopReason,
    default_instance_name,
)
from claimcheck.contracts.errors import (
    ClaimCheckError,
    CursorInitFailedError,
    FetchFailedError,
    InvalidSourceError,
    MalformedPointerError,
    NamespaceResolutionFailedError,
    PublishFailedError,
    RemoteCallError,
    RetrieveFailedError,
    SinkWriteError,
    StoreFailedError,
)
from claimcheck.contracts.gateways import (
    NO_RESPONSE,
    FetchResponse,
    GatewayResponse,
    ObjectStoreGateway,
    StreamGateway,
    is_success,
)

__all__ = [
    "DEFAULT_BATCH_LIMIT",
    "DEFAULT_GROUP",
    "DEFAULT_INTERVAL_SECONDS",
    "NO_RESPONSE",
    "ClaimCheck",
    "ClaimCheckError",
    "ConsumerResult",
    "Cursor",
    "CursorInitFailedError",
    "FetchFailedError",
    "FetchResponse",
    "GatewayResponse",
    "InvalidSourceError",
    "MalformedPointerError",
    "MalformedPolicy",
    "NamespaceResolutionFailedError",
    "ObjectStoreGateway",
    "PollConfig",
    "PublishFailedError",
    "RemoteCallError",
    "RetrieveFailedError",
    "SinkWriteError",
    "StopReason",
    "StoreFailedError",
    "StreamGateway",
    "default_instance_name",
    "is_success",
]
