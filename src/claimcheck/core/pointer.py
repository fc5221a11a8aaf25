# src/claimcheck/core/pointer.py
"""Claim-check pointer codec.

Wire format (shared with every existing producer/consumer, do not change):

    /n/<namespace>/b/<container>/o/<key>

The parser walks the string left to right instead of matching a regex.
Namespace and container end at the first "/", so they can never contain
one (ClaimCheck enforces this on construction). Everything after "/o/" is
the key, which may contain "/".
"""

from __future__ import annotations

from claimcheck.contracts import ClaimCheck, MalformedPointerError

__all__ = ["decode_pointer", "encode_pointer"]

_PREFIX = "/n/"
_CONTAINER_TAG = "b"
_KEY_TAG = "o"


def encode_pointer(claim: ClaimCheck) -> str:
    """Serialize a claim check to its wire form."""
    return f"{_PREFIX}{claim.namespace}/{_CONTAINER_TAG}/{claim.container}/{_KEY_TAG}/{claim.key}"


def decode_pointer(value: str | bytes) -> ClaimCheck:
    """Parse a wire-form pointer.

    Args:
        value: Pointer text, or raw message bytes (must be UTF-8)

    Returns:
        The ClaimCheck the pointer names

    Raises:
        MalformedPointerError: If the value does not match the grammar
    """
    if isinstance(value, bytes):
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedPointerError(repr(value), "message body is not valid UTF-8") from None
    else:
        text = value

    if not text.startswith(_PREFIX):
        raise MalformedPointerError(text, f"missing {_PREFIX!r} prefix")

    namespace, sep, rest = text[len(_PREFIX) :].partition("/")
    if not namespace:
        raise MalformedPointerError(text, "empty namespace")
    if not sep:
        raise MalformedPointerError(text, "missing '/b/' segment")

    tag, sep, rest = rest.partition("/")
    if tag != _CONTAINER_TAG or not sep:
        raise MalformedPointerError(text, "expected '/b/' after namespace")

    container, sep, rest = rest.partition("/")
    if not container:
        raise MalformedPointerError(text, "empty container")
    if not sep:
        raise MalformedPointerError(text, "missing '/o/' segment")

    tag, sep, key = rest.partition("/")
    if tag != _KEY_TAG or not sep:
        raise MalformedPointerError(text, "expected '/o/' after container")
    if not key:
        raise MalformedPointerError(text, "empty key")

    return ClaimCheck(namespace=namespace, container=container, key=key)
