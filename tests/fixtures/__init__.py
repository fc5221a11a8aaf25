# tests/fixtures/__init__.py
"""Shared test doubles for claimcheck tests.

Available doubles:
- RecordingObjectStore: in-memory ObjectStoreGateway with scripted statuses
- RecordingStream: in-memory StreamGateway with scripted batches
- MemorySink: PayloadSink collecting writes in a list
"""

from tests.fixtures.gateways import MemorySink, RecordingObjectStore, RecordingStream

__all__ = [
    "MemorySink",
    "RecordingObjectStore",
    "RecordingStream",
]
