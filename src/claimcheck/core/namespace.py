# src/claimcheck/core/namespace.py
"""One-shot object storage namespace resolution.

The namespace is resolved once per process, before any producer or consumer
work, and then treated as immutable configuration for the run.
"""

from __future__ import annotations

from claimcheck.contracts import NamespaceResolutionFailedError, ObjectStoreGateway
from claimcheck.core.logging import get_logger

logger = get_logger(__name__)


def resolve_namespace(store: ObjectStoreGateway, compartment_id: str) -> str:
    """Resolve the namespace that every pointer of this run will embed.

    Raises:
        NamespaceResolutionFailedError: On a non-success status or an empty namespace
    """
    response = store.resolve_namespace(compartment_id)
    if not response.ok:
        raise NamespaceResolutionFailedError(response.status, response.detail)
    if not response.data:
        raise NamespaceResolutionFailedError(response.status, "service returned an empty namespace")

    logger.info("Resolved object storage namespace", namespace=response.data, compartment_id=compartment_id)
    return response.data
