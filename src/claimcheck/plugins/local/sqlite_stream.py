# src/claimcheck/plugins/local/sqlite_stream.py
"""SQLite-backed stream for local runs and tests.

Emulates the parts of a managed stream service the consumer relies on,
using SQLAlchemy Core (not ORM):

- append-only, per-stream monotonically increasing offsets
- named consumer groups with a committed offset
- LATEST cursors: a group joining for the first time starts after the
  newest message; a group that already exists resumes at its committed offset
- single-use cursor tokens: every fetch deletes its cursor and returns a
  new one; a used or unknown token is rejected with status 400
- commit-on-get: the group offset advances as soon as messages are handed out
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Self

from sqlalchemy import (
    Column,
    Connection,
    DateTime,
    Integer,
    LargeBinary,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from claimcheck.contracts import FetchResponse, GatewayResponse
from claimcheck.core.logging import get_logger

__all__ = ["SqliteStreamGateway", "StreamDatabaseError", "metadata"]

logger = get_logger(__name__)


class StreamDatabaseError(Exception):
    """Raised when the stream database cannot be opened or its tables created."""

    pass

_OK = 200
_BAD_REQUEST = 400
_SERVER_ERROR = 500

metadata = MetaData()

messages_table = Table(
    "stream_messages",
    metadata,
    Column("stream_id", String(255), nullable=False),
    Column("message_offset", Integer, nullable=False),
    Column("value", LargeBinary, nullable=False),
    Column("appended_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("stream_id", "message_offset"),
)

group_offsets_table = Table(
    "group_offsets",
    metadata,
    Column("stream_id", String(255), nullable=False),
    Column("group_name", String(255), nullable=False),
    # Next offset the group has not yet been handed
    Column("committed_offset", Integer, nullable=False),
    PrimaryKeyConstraint("stream_id", "group_name"),
)

cursors_table = Table(
    "cursors",
    metadata,
    Column("token", String(64), primary_key=True),
    Column("stream_id", String(255), nullable=False),
    Column("group_name", String(255), nullable=False),
    Column("instance_name", String(255), nullable=False),
    Column("position", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


class SqliteStreamGateway:
    """StreamGateway over a SQLite database."""

    def __init__(self, url: str) -> None:
        """Open (and create if needed) the stream database.

        Raises:
            StreamDatabaseError: If the URL is invalid or the database cannot be opened
        """
        self.url = url
        try:
            engine = create_engine(url, echo=False)
        except SQLAlchemyError as e:
            raise StreamDatabaseError(f"Invalid stream database URL {url!r}: {e}") from e
        self._configure_sqlite(engine)
        try:
            metadata.create_all(engine)
        except SQLAlchemyError as e:
            engine.dispose()
            raise StreamDatabaseError(f"Cannot open stream database {url}: {e}") from e
        self._engine: Engine | None = engine

    @classmethod
    def in_memory(cls) -> Self:
        """Create a stream in an in-memory SQLite database (tests)."""
        return cls("sqlite:///:memory:")

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        """Register a connection hook setting WAL mode and a busy timeout."""

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
            cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
            cursor.execute("PRAGMA journal_mode=WAL")
            # Producers and consumers in separate processes share the file
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Stream database is closed")
        return self._engine

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    # === StreamGateway ===

    def append(self, stream_id: str, messages: Sequence[bytes]) -> GatewayResponse[None]:
        now = datetime.now(tz=UTC)
        try:
            with self.engine.begin() as conn:
                next_offset = self._latest_offset(conn, stream_id)
                for message in messages:
                    conn.execute(
                        insert(messages_table).values(stream_id=stream_id, message_offset=next_offset, value=bytes(message), appended_at=now)
                    )
                    next_offset += 1
        except SQLAlchemyError as e:
            return GatewayResponse(status=_SERVER_ERROR, detail=str(e))
        return GatewayResponse(status=_OK)

    def create_cursor(self, stream_id: str, group: str, instance: str) -> GatewayResponse[str]:
        try:
            with self.engine.begin() as conn:
                committed = self._committed_offset(conn, stream_id, group)
                if committed is None:
                    committed = self._latest_offset(conn, stream_id)
                    conn.execute(insert(group_offsets_table).values(stream_id=stream_id, group_name=group, committed_offset=committed))
                    logger.debug("Consumer group created", stream_id=stream_id, group=group, offset=committed)
                token = self._issue_cursor(conn, stream_id, group, instance, committed)
        except SQLAlchemyError as e:
            return GatewayResponse(status=_SERVER_ERROR, detail=str(e))
        return GatewayResponse(status=_OK, data=token)

    def fetch(self, stream_id: str, cursor: str, limit: int) -> FetchResponse:
        if limit < 1:
            return FetchResponse(status=_BAD_REQUEST, detail=f"limit must be >= 1, got {limit}")
        try:
            with self.engine.begin() as conn:
                row = conn.execute(select(cursors_table).where(cursors_table.c.token == cursor)).first()
                if row is None:
                    return FetchResponse(status=_BAD_REQUEST, detail="cursor is unknown or has already been used")
                if row.stream_id != stream_id:
                    return FetchResponse(status=_BAD_REQUEST, detail="cursor belongs to a different stream")

                # Other members of the group may have moved the committed offset past us
                committed = self._committed_offset(conn, stream_id, row.group_name)
                start = max(row.position, committed if committed is not None else row.position)

                batch = conn.execute(
                    select(messages_table.c.message_offset, messages_table.c.value)
                    .where(messages_table.c.stream_id == stream_id, messages_table.c.message_offset >= start)
                    .order_by(messages_table.c.message_offset)
                    .limit(limit)
                ).all()
                next_position = batch[-1].message_offset + 1 if batch else start

                # Used tokens are deleted so the table holds one row per live cursor
                conn.execute(delete(cursors_table).where(cursors_table.c.token == cursor))
                # Commit on get
                conn.execute(
                    update(group_offsets_table)
                    .where(
                        group_offsets_table.c.stream_id == stream_id,
                        group_offsets_table.c.group_name == row.group_name,
                        group_offsets_table.c.committed_offset < next_position,
                    )
                    .values(committed_offset=next_position)
                )
                next_token = self._issue_cursor(conn, stream_id, row.group_name, row.instance_name, next_position)
        except SQLAlchemyError as e:
            return FetchResponse(status=_SERVER_ERROR, detail=str(e))

        return FetchResponse(status=_OK, messages=tuple(bytes(r.value) for r in batch), next_cursor=next_token)

    # === Helpers ===

    @staticmethod
    def _latest_offset(conn: Connection, stream_id: str) -> int:
        """Offset the next appended message will get."""
        current_max = conn.execute(
            select(func.max(messages_table.c.message_offset)).where(messages_table.c.stream_id == stream_id)
        ).scalar_one_or_none()
        return 0 if current_max is None else current_max + 1

    @staticmethod
    def _committed_offset(conn: Connection, stream_id: str, group: str) -> int | None:
        return conn.execute(
            select(group_offsets_table.c.committed_offset).where(
                group_offsets_table.c.stream_id == stream_id,
                group_offsets_table.c.group_name == group,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _issue_cursor(conn: Connection, stream_id: str, group: str, instance: str, position: int) -> str:
        token = uuid.uuid4().hex
        conn.execute(
            insert(cursors_table).values(
                token=token,
                stream_id=stream_id,
                group_name=group,
                instance_name=instance,
                position=position,
                created_at=datetime.now(tz=UTC),
            )
        )
        return token
