# src/claimcheck/contracts/claim_check.py
"""Value types for the claim-check protocol.

ClaimCheck is the pointer carried on the stream in place of a payload.
Cursor is the consumer's server-issued read position. Both are immutable:
a consumer replaces its cursor after every fetch, it never mutates it.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field, replace
from typing import Literal

MalformedPolicy = Literal["fail", "skip"]

DEFAULT_GROUP = "all"
DEFAULT_INTERVAL_SECONDS = 2.0
DEFAULT_BATCH_LIMIT = 10


def default_instance_name() -> str:
    """Identity of this consumer within its group: ``<hostname>-<pid>``."""
    return f"{socket.gethostname()}-{os.getpid()}"


@dataclass(frozen=True, slots=True)
class ClaimCheck:
    """Immutable reference to a payload held in an object store.

    ``namespace`` and ``container`` may not contain ``/`` because the pointer
    wire format uses it as the field delimiter. ``key`` is the trailing field
    and may contain ``/``.

    Raises:
        ValueError: If any field is empty, or namespace/container contain "/"
    """

    namespace: str
    container: str
    key: str

    def __post_init__(self) -> None:
        for name in ("namespace", "container", "key"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"ClaimCheck.{name} must be a non-empty string, got {value!r}")
        if "/" in self.namespace:
            raise ValueError(f"ClaimCheck.namespace must not contain '/', got {self.namespace!r}")
        if "/" in self.container:
            raise ValueError(f"ClaimCheck.container must not contain '/', got {self.container!r}")


@dataclass(frozen=True, slots=True)
class Cursor:
    """Opaque stream position for one consumer-group member.

    A cursor is good for exactly one fetch. The fetch response carries the
    next token, and advance() builds the cursor for the following poll.
    """

    value: str
    group: str
    instance: str

    def advance(self, next_value: str) -> Cursor:
        return replace(self, value=next_value)


@dataclass(frozen=True, slots=True)
class PollConfig:
    """Consumer polling parameters.

    Attributes:
        group: Consumer group the cursor is tracked under
        interval_seconds: Fixed delay between polls (no backoff)
        instance_name: This consumer's identity inside the group
        batch_limit: Max messages per fetch
        on_malformed: "fail" stops the consumer on an unparseable message,
            "skip" logs it and moves on to the next one
    """

    group: str = DEFAULT_GROUP
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    instance_name: str = field(default_factory=default_instance_name)
    batch_limit: int = DEFAULT_BATCH_LIMIT
    on_malformed: MalformedPolicy = "fail"

    def __post_init__(self) -> None:
        if not self.group:
            raise ValueError("group must not be empty")
        if not self.instance_name:
            raise ValueError("instance_name must not be empty")
        if self.interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {self.interval_seconds}")
        if self.batch_limit < 1:
            raise ValueError(f"batch_limit must be >= 1, got {self.batch_limit}")
        if self.on_malformed not in ("fail", "skip"):
            raise ValueError(f"on_malformed must be 'fail' or 'skip', got {self.on_malformed!r}")


StopReason = Literal["shutdown", "max_polls"]


@dataclass(frozen=True, slots=True)
class ConsumerResult:
    """Summary of a consumer run that ended without a fatal error."""

    polls: int
    redeemed: int
    skipped: int
    stop_reason: StopReason
