# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from claimcheck.plugins.local.sqlite_stream import SqliteStreamGateway
from tests.fixtures import MemorySink, RecordingObjectStore, RecordingStream


@pytest.fixture
def call_log() -> list[tuple[Any, ...]]:
    """Call order shared by the store and stream doubles."""
    return []


@pytest.fixture
def store(call_log: list[tuple[Any, ...]]) -> RecordingObjectStore:
    return RecordingObjectStore(calls=call_log)


@pytest.fixture
def stream(call_log: list[tuple[Any, ...]]) -> RecordingStream:
    return RecordingStream(calls=call_log)


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def sqlite_stream():
    """In-memory SQLite stream, disposed after the test."""
    with SqliteStreamGateway.in_memory() as gateway:
        yield gateway


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
