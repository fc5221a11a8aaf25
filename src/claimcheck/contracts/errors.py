# src/claimcheck/contracts/errors.py
"""Error taxonomy for the claim-check protocol.

Components raise these and never terminate the process. The CLI is the
only place that turns an error into an exit status.

Remote-call errors carry the operation name and the status code reported by
the gateway so the failure can be diagnosed without a traceback. A status of
0 means no HTTP response was received at all (connection error, timeout).
"""

from __future__ import annotations

from pathlib import Path


class ClaimCheckError(Exception):
    """Base class for all claim-check failures."""

    pass


class InvalidSourceError(ClaimCheckError):
    """Raised when the producer's input file is missing, not a regular file, or unreadable.

    Raised before any remote call is made.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid source file {path}: {reason}")


class MalformedPointerError(ClaimCheckError):
    """Raised when a message body does not match the pointer grammar."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        # Message bodies are untrusted; keep the echo short
        super().__init__(f"Malformed claim-check pointer {value[:120]!r}: {reason}")


class SinkWriteError(ClaimCheckError):
    """Raised when a redeemed payload cannot be written to the local destination."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write payload to {path}: {reason}")


class RemoteCallError(ClaimCheckError):
    """A gateway reported a non-success status.

    Attributes:
        operation: Human-readable name of the failed call
        status: Status code reported by the gateway (0 = no response)
        detail: Optional service-provided message
    """

    operation: str = "remote call"

    def __init__(self, status: int, detail: str | None = None) -> None:
        self.status = status
        self.detail = detail
        message = f"{self.operation} failed with status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreFailedError(RemoteCallError):
    operation = "Object store put"


class PublishFailedError(RemoteCallError):
    operation = "Stream append"


class FetchFailedError(RemoteCallError):
    operation = "Stream fetch"


class RetrieveFailedError(RemoteCallError):
    operation = "Object store get"


class CursorInitFailedError(RemoteCallError):
    operation = "Cursor creation"


class NamespaceResolutionFailedError(RemoteCallError):
    operation = "Namespace resolution"
