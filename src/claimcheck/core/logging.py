# src/claimcheck/core/logging.py
"""Structured logging for producer and consumer runs.

Gateways and the engine log through structlog; the OCI, Azure and
SQLAlchemy SDKs log through stdlib logging. Both are rendered by one
stdlib handler whose ProcessorFormatter runs the same processor chain, so
a consumer's "claim check redeemed" event and an SDK connection warning
come out in the same JSON or console format.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# SDK loggers held at WARNING (or stricter) even under --verbose, keyed by
# the backend that pulls them in.
_NOISY_LOGGERS: dict[str, tuple[str, ...]] = {
    "oci": ("oci", "oci.base_client", "oci.circuit_breaker"),
    "azure": ("azure", "azure.core", "azure.core.pipeline.policies.http_logging_policy", "azure.identity"),
    "sqlite": ("sqlalchemy.engine", "sqlalchemy.pool"),
    "http": ("urllib3", "urllib3.connectionpool"),
}

# Run for every record, whether it came from structlog or stdlib
_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderers(json_output: bool) -> list[Any]:
    """Final processors for the handler; drops ProcessorFormatter's meta keys first."""
    if json_output:
        return [
            ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging to a single stdout handler.

    Safe to call more than once; each call replaces the root handlers.

    Args:
        json_output: One JSON object per line instead of console output
        level: Root log level name (DEBUG, INFO, WARNING, ERROR)
    """
    log_level = getattr(logging, level.upper())

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Off so tests can reconfigure between cases
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=_renderers(json_output), foreign_pre_chain=_SHARED_PROCESSORS))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    sdk_level = max(log_level, logging.WARNING)
    for names in _NOISY_LOGGERS.values():
        for name in names:
            logging.getLogger(name).setLevel(sdk_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; bind stream_id, key etc. per call site."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
