# src/claimcheck/engine/producer.py
"""Producer: store a local file, then announce its claim check on the stream.

Sequencing is the whole consistency story. The object store put must be
acknowledged before the stream append is issued, so a consumer can never
observe a pointer to an object that does not exist yet.

There is no rollback: if the append fails the stored object stays behind as
an unannounced orphan. There are no retries either; every failure surfaces
to the caller immediately.
"""

from __future__ import annotations

import os
from pathlib import Path

from claimcheck.contracts import (
    ClaimCheck,
    InvalidSourceError,
    ObjectStoreGateway,
    PublishFailedError,
    StoreFailedError,
    StreamGateway,
)
from claimcheck.core.logging import get_logger
from claimcheck.core.pointer import encode_pointer

logger = get_logger(__name__)


class Producer:
    """Publishes one local file as one claim check.

    Args:
        store: Object store the payload is written to
        stream: Stream the pointer is appended to
        namespace: Resolved object storage namespace (constant for the run)
        stream_id: Target stream
    """

    def __init__(
        self,
        store: ObjectStoreGateway,
        stream: StreamGateway,
        *,
        namespace: str,
        stream_id: str,
    ) -> None:
        self._store = store
        self._stream = stream
        self._namespace = namespace
        self._stream_id = stream_id

    def publish(self, file_path: Path | str, container: str) -> ClaimCheck:
        """Store the file and publish a pointer to it.

        Args:
            file_path: Local regular file to publish; its base name becomes the key
            container: Bucket/container to store it in

        Returns:
            The claim check, only after both the store and the append succeeded

        Raises:
            InvalidSourceError: File missing, not a regular file, or unreadable
            StoreFailedError: Object store put reported a non-success status
            PublishFailedError: Stream append reported a non-success status
        """
        path = Path(file_path)
        content = self._read_source(path)

        claim = ClaimCheck(namespace=self._namespace, container=container, key=path.name)
        pointer = encode_pointer(claim)
        log = logger.bind(pointer=pointer, stream_id=self._stream_id)

        log.info("Uploading payload", size_bytes=len(content), source=str(path))
        put_response = self._store.put(claim.namespace, claim.container, claim.key, content)
        if not put_response.ok:
            raise StoreFailedError(put_response.status, put_response.detail)
        log.info("Payload stored", status=put_response.status)

        append_response = self._stream.append(self._stream_id, [pointer.encode("utf-8")])
        if not append_response.ok:
            raise PublishFailedError(append_response.status, append_response.detail)
        log.info("Claim check published", status=append_response.status)

        return claim

    @staticmethod
    def _read_source(path: Path) -> bytes:
        if not path.exists():
            raise InvalidSourceError(path, "file does not exist")
        if not path.is_file():
            raise InvalidSourceError(path, "not a regular file")
        if not os.access(path, os.R_OK):
            raise InvalidSourceError(path, "file is not readable")
        try:
            return path.read_bytes()
        except OSError as e:
            raise InvalidSourceError(path, str(e)) from e
