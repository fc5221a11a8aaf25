"""Claim-check engine: the producer, the consumer state machine and local sinks."""

from claimcheck.engine.consumer import Consumer, PollOutcome
from claimcheck.engine.producer import Producer
from claimcheck.engine.shutdown import install_shutdown_handler
from claimcheck.engine.sinks import DirectorySink, FileSink, PayloadSink, create_sink

__all__ = [
    "Consumer",
    "DirectorySink",
    "FileSink",
    "PayloadSink",
    "PollOutcome",
    "Producer",
    "create_sink",
    "install_shutdown_handler",
]
