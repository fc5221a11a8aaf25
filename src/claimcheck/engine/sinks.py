# src/claimcheck/engine/sinks.py
"""Local destinations for redeemed payloads.

FileSink writes every payload to one configured path, overwriting whatever
is there. DirectorySink keeps one file per object key under a base
directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

from claimcheck.contracts import ClaimCheck, SinkWriteError
from claimcheck.core.logging import get_logger

__all__ = ["DirectorySink", "FileSink", "PayloadSink", "create_sink"]

logger = get_logger(__name__)

DestinationKind = Literal["file", "directory"]


@runtime_checkable
class PayloadSink(Protocol):
    """Persists the bytes a claim check was redeemed for."""

    def write(self, claim: ClaimCheck, content: bytes) -> Path:
        """Write content and return the path written.

        Raises:
            SinkWriteError: If the destination cannot be written
        """
        ...


def _write(path: Path, content: bytes, claim: ClaimCheck) -> None:
    if path.exists():
        if not path.is_file():
            raise SinkWriteError(path, "destination exists and is not a regular file")
        logger.warning("Overwriting existing destination file", path=str(path), key=claim.key)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as e:
        raise SinkWriteError(path, str(e)) from e


class FileSink:
    """Writes every payload to the same path."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, claim: ClaimCheck, content: bytes) -> Path:
        _write(self.path, content, claim)
        return self.path


class DirectorySink:
    """Writes each payload to ``base_path/<key>``.

    Keys come from stream messages and are untrusted, so the resolved path
    must stay inside base_path.
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path

    def _path_for_key(self, key: str) -> Path:
        path = self.base_path / key
        resolved = path.resolve()
        base_resolved = self.base_path.resolve()
        if resolved == base_resolved or not resolved.is_relative_to(base_resolved):
            raise SinkWriteError(path, f"key {key!r} resolves outside {base_resolved}")
        return path

    def write(self, claim: ClaimCheck, content: bytes) -> Path:
        path = self._path_for_key(claim.key)
        _write(path, content, claim)
        return path


def create_sink(destination: Path, kind: DestinationKind = "file") -> PayloadSink:
    if kind == "directory":
        return DirectorySink(destination)
    return FileSink(destination)
