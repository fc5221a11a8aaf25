# src/claimcheck/engine/consumer.py
"""Consumer: poll the stream and redeem every claim check it carries.

State machine:
    start()      create a group cursor (latest position, commit on get)
    poll         fetch <= batch_limit messages with the current cursor,
                 redeem each in delivery order, then replace the cursor with
                 the next token from the fetch (even for an empty batch)
    wait         block for interval_seconds on the shutdown event

The loop ends when the shutdown event is set (checked before every fetch,
before every retrieval and during the wait), when max_polls is reached, or
when a fatal error propagates. Fatal errors leave the cursor where it was,
so the unredeemed tail of a batch is never skipped over locally.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from claimcheck.contracts import (
    ClaimCheck,
    ConsumerResult,
    Cursor,
    CursorInitFailedError,
    FetchFailedError,
    MalformedPointerError,
    ObjectStoreGateway,
    PollConfig,
    RetrieveFailedError,
    StopReason,
    StreamGateway,
)
from claimcheck.core.logging import get_logger
from claimcheck.core.pointer import decode_pointer
from claimcheck.engine.sinks import PayloadSink

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PollOutcome:
    """Result of one fetch-and-redeem pass.

    next_cursor is None when the pass was interrupted by shutdown before the
    batch was fully redeemed; the caller must not advance in that case.
    """

    next_cursor: Cursor | None
    fetched: int
    redeemed: int
    skipped: int

    @property
    def interrupted(self) -> bool:
        return self.next_cursor is None


class Consumer:
    """Redeems claim checks published on one stream.

    Args:
        stream: Stream the pointers are read from
        store: Object store the payloads are read from
        sink: Local destination for redeemed payloads
        stream_id: Stream to consume
        config: Group, identity, batch and interval settings
    """

    def __init__(
        self,
        stream: StreamGateway,
        store: ObjectStoreGateway,
        sink: PayloadSink,
        *,
        stream_id: str,
        config: PollConfig,
    ) -> None:
        self._stream = stream
        self._store = store
        self._sink = sink
        self._stream_id = stream_id
        self._config = config
        self._cursor: Cursor | None = None
        self._log = logger.bind(stream_id=stream_id, group=config.group, instance=config.instance_name)

    @property
    def cursor(self) -> Cursor | None:
        """Cursor the next fetch will use (None before start())."""
        return self._cursor

    def start(self) -> Cursor:
        """Acquire the group cursor.

        Raises:
            CursorInitFailedError: If the stream service rejects cursor creation
        """
        response = self._stream.create_cursor(self._stream_id, self._config.group, self._config.instance_name)
        if not response.ok:
            raise CursorInitFailedError(response.status, response.detail)
        if not response.data:
            raise CursorInitFailedError(response.status, "service returned no cursor token")

        self._cursor = Cursor(value=response.data, group=self._config.group, instance=self._config.instance_name)
        self._log.info("Group cursor created")
        return self._cursor

    def poll_once(self, shutdown_event: threading.Event | None = None) -> PollOutcome:
        """Fetch one batch, redeem it, and advance the cursor.

        Raises:
            RuntimeError: If called before start()
            FetchFailedError: Fetch reported a non-success status
            RetrieveFailedError: A referenced object could not be retrieved
            MalformedPointerError: A message is not a pointer and on_malformed="fail"
            SinkWriteError: The payload could not be written locally
        """
        if self._cursor is None:
            raise RuntimeError("Consumer.start() must be called before polling")

        cursor = self._cursor
        response = self._stream.fetch(self._stream_id, cursor.value, self._config.batch_limit)
        if not response.ok:
            raise FetchFailedError(response.status, response.detail)
        if not response.next_cursor:
            raise FetchFailedError(response.status, "response carried no next cursor")

        messages = list(response.messages)
        if messages:
            self._log.info("Fetched batch", size=len(messages))
        else:
            self._log.debug("No new messages")

        redeemed = 0
        skipped = 0
        for message in messages:
            if shutdown_event is not None and shutdown_event.is_set():
                self._log.info("Shutdown requested mid-batch", unredeemed=len(messages) - redeemed - skipped)
                return PollOutcome(next_cursor=None, fetched=len(messages), redeemed=redeemed, skipped=skipped)
            if self._redeem(message):
                redeemed += 1
            else:
                skipped += 1

        self._cursor = cursor.advance(response.next_cursor)
        return PollOutcome(next_cursor=self._cursor, fetched=len(messages), redeemed=redeemed, skipped=skipped)

    def run(
        self,
        shutdown_event: threading.Event | None = None,
        *,
        max_polls: int | None = None,
    ) -> ConsumerResult:
        """Poll until shutdown, max_polls, or a fatal error.

        Args:
            shutdown_event: Set from outside (signal handler, another thread)
                to stop the loop. A private event is used when omitted.
            max_polls: Stop after this many completed polls (None = unbounded)

        Returns:
            Counts for the run and why it stopped

        Raises:
            CursorInitFailedError, FetchFailedError, RetrieveFailedError,
            MalformedPointerError, SinkWriteError: Fatal, propagated unchanged
        """
        if max_polls is not None and max_polls < 1:
            raise ValueError(f"max_polls must be >= 1, got {max_polls}")

        event = shutdown_event if shutdown_event is not None else threading.Event()
        polls = 0
        redeemed = 0
        skipped = 0

        def finish(reason: StopReason) -> ConsumerResult:
            result = ConsumerResult(polls=polls, redeemed=redeemed, skipped=skipped, stop_reason=reason)
            self._log.info("Consumer stopped", reason=reason, polls=polls, redeemed=redeemed, skipped=skipped)
            return result

        if event.is_set():
            return finish("shutdown")
        if self._cursor is None:
            self.start()

        while True:
            if event.is_set():
                return finish("shutdown")

            outcome = self.poll_once(event)
            redeemed += outcome.redeemed
            skipped += outcome.skipped
            if outcome.interrupted:
                return finish("shutdown")
            polls += 1

            if max_polls is not None and polls >= max_polls:
                return finish("max_polls")

            # Not shortened by new messages, only by shutdown
            if event.wait(self._config.interval_seconds):
                return finish("shutdown")

    def _redeem(self, message: bytes) -> bool:
        """Redeem one message. Returns False if it was skipped as malformed."""
        try:
            claim = decode_pointer(message)
        except MalformedPointerError as e:
            if self._config.on_malformed == "fail":
                raise
            self._log.warning("Skipping malformed claim check", error=str(e))
            return False

        content = self._retrieve(claim)
        path = self._sink.write(claim, content)
        self._log.info(
            "Claim check redeemed",
            namespace=claim.namespace,
            container=claim.container,
            key=claim.key,
            size_bytes=len(content),
            destination=str(path),
        )
        return True

    def _retrieve(self, claim: ClaimCheck) -> bytes:
        response = self._store.get(claim.namespace, claim.container, claim.key)
        if not response.ok:
            raise RetrieveFailedError(response.status, response.detail)
        return response.data if response.data is not None else b""
