"""Core infrastructure: configuration, logging, pointer codec, namespace resolution."""

from claimcheck.core.config import (
    ClaimCheckSettings,
    ConsumerSettings,
    ProducerSettings,
    load_settings,
)
from claimcheck.core.logging import configure_logging, get_logger
from claimcheck.core.namespace import resolve_namespace
from claimcheck.core.pointer import decode_pointer, encode_pointer

__all__ = [
    "ClaimCheckSettings",
    "ConsumerSettings",
    "ProducerSettings",
    "configure_logging",
    "decode_pointer",
    "encode_pointer",
    "get_logger",
    "load_settings",
    "resolve_namespace",
]
