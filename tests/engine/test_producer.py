# tests/engine/test_producer.py
"""Tests for the claim-check producer."""

import os
import sys
from pathlib import Path
from typing import Any

import pytest

from tests.fixtures import RecordingObjectStore, RecordingStream


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello world")
    return path


def _producer(store: RecordingObjectStore, stream: RecordingStream, namespace: str = "ns1"):
    from claimcheck.engine.producer import Producer

    return Producer(store, stream, namespace=namespace, stream_id="stream-1")


class TestProducerPublish:
    def test_returns_claim_and_publishes_pointer(self, store: RecordingObjectStore, stream: RecordingStream, source_file: Path) -> None:
        claim = _producer(store, stream).publish(source_file, "my-bucket")

        assert (claim.namespace, claim.container, claim.key) == ("ns1", "my-bucket", "notes.txt")
        assert stream.appended == [b"/n/ns1/b/my-bucket/o/notes.txt"]
        assert store.objects[("ns1", "my-bucket", "notes.txt")] == b"hello world"

    def test_put_happens_before_append(
        self,
        store: RecordingObjectStore,
        stream: RecordingStream,
        call_log: list[tuple[Any, ...]],
        source_file: Path,
    ) -> None:
        _producer(store, stream).publish(source_file, "my-bucket")

        assert [call[0] for call in call_log] == ["put", "append"]
        assert call_log[1] == ("append", "stream-1", [b"/n/ns1/b/my-bucket/o/notes.txt"])

    def test_key_is_base_name_only(self, store: RecordingObjectStore, stream: RecordingStream, tmp_path: Path) -> None:
        nested = tmp_path / "deep" / "dir"
        nested.mkdir(parents=True)
        path = nested / "report.csv"
        path.write_text("a,b\n")

        claim = _producer(store, stream).publish(str(path), "b")
        assert claim.key == "report.csv"

    def test_empty_file_is_published(self, store: RecordingObjectStore, stream: RecordingStream, tmp_path: Path) -> None:
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")

        _producer(store, stream).publish(path, "b")
        assert store.objects[("ns1", "b", "empty.bin")] == b""
        assert len(stream.appended) == 1


class TestProducerFailures:
    def test_store_failure_skips_append(
        self,
        store: RecordingObjectStore,
        stream: RecordingStream,
        call_log: list[tuple[Any, ...]],
        source_file: Path,
    ) -> None:
        from claimcheck.contracts import StoreFailedError

        store.put_status = 403
        with pytest.raises(StoreFailedError) as exc_info:
            _producer(store, stream).publish(source_file, "my-bucket")

        assert exc_info.value.status == 403
        assert [call[0] for call in call_log] == ["put"]
        assert stream.appended == []

    def test_append_failure_leaves_stored_object(self, store: RecordingObjectStore, stream: RecordingStream, source_file: Path) -> None:
        from claimcheck.contracts import PublishFailedError

        stream.append_status = 500
        with pytest.raises(PublishFailedError) as exc_info:
            _producer(store, stream).publish(source_file, "my-bucket")

        assert exc_info.value.status == 500
        assert [call[0] for call in store.calls].count("put") == 1
        assert store.calls.index(("put", "ns1", "my-bucket", "notes.txt")) < [call[0] for call in store.calls].index("append")
        # No rollback: the object is an unannounced orphan
        assert ("ns1", "my-bucket", "notes.txt") in store.objects

    def test_missing_file_makes_no_remote_calls(
        self,
        store: RecordingObjectStore,
        stream: RecordingStream,
        call_log: list[tuple[Any, ...]],
        tmp_path: Path,
    ) -> None:
        from claimcheck.contracts import InvalidSourceError

        with pytest.raises(InvalidSourceError, match="does not exist"):
            _producer(store, stream).publish(tmp_path / "missing.txt", "b")
        assert call_log == []

    def test_directory_rejected(self, store: RecordingObjectStore, stream: RecordingStream, tmp_path: Path) -> None:
        from claimcheck.contracts import InvalidSourceError

        with pytest.raises(InvalidSourceError, match="not a regular file"):
            _producer(store, stream).publish(tmp_path, "b")

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="root can read any file")
    def test_unreadable_file_rejected(self, store: RecordingObjectStore, stream: RecordingStream, source_file: Path) -> None:
        from claimcheck.contracts import InvalidSourceError

        source_file.chmod(0o000)
        try:
            with pytest.raises(InvalidSourceError, match="not readable"):
                _producer(store, stream).publish(source_file, "b")
        finally:
            source_file.chmod(0o644)
        assert store.calls == []


class TestProducerEndToEnd:
    def test_local_backends(self, tmp_path: Path, sqlite_stream: Any) -> None:
        """Filesystem store + SQLite stream carry the pointer and the payload."""
        from claimcheck.core.namespace import resolve_namespace
        from claimcheck.engine.producer import Producer
        from claimcheck.plugins.local.filesystem_store import FilesystemObjectStore

        fs_store = FilesystemObjectStore(tmp_path / "store", namespace="ns1")
        source = tmp_path / "notes.txt"
        source.write_text("hello")

        # Join the group before publishing so the message is after LATEST
        cursor = sqlite_stream.create_cursor("stream-1", "all", "reader").data

        namespace = resolve_namespace(fs_store, "compartment")
        Producer(fs_store, sqlite_stream, namespace=namespace, stream_id="stream-1").publish(source, "my-bucket")

        batch = sqlite_stream.fetch("stream-1", cursor, 10)
        assert list(batch.messages) == [b"/n/ns1/b/my-bucket/o/notes.txt"]
        assert (tmp_path / "store" / "ns1" / "my-bucket" / "notes.txt").read_text() == "hello"
