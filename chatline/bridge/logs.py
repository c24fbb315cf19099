"""Backing message logs: range reads by channel or by DM recipient."""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from chatline.core.models import Event, EventValue, PageOpts
from chatline.lib import store
from chatline.lib.timestamps import now_ms

logger = logging.getLogger(__name__)

CHAT_TEXT = "chat/text"

_SCOPES = {"messages": "channel", "private_messages": "recipient"}


class MessageLog(Protocol):
    async def read(self, key: str, opts: PageOpts | Mapping[str, Any] | None) -> list[Event]: ...


def _row_to_event(row: store.Row) -> Event:
    content = json.loads(row["content"]) if row["content"] else None
    return Event(
        key=row["author"],
        seq=row["seq"],
        value=EventValue(timestamp=row["timestamp"], type=row["type"], content=content),
    )


class SqliteMessageLog:
    """Append-only log in the chatline database.

    ``messages`` is keyed by channel name, ``private_messages`` by recipient.
    Reads return newest first.
    """

    def __init__(self, table: str = "messages"):
        if table not in _SCOPES:
            raise ValueError(f"Unknown message table '{table}'")
        self.table = table
        self.scope = _SCOPES[table]

    async def read(self, key: str, opts: PageOpts | Mapping[str, Any] | None = None) -> list[Event]:
        return await asyncio.to_thread(self.read_sync, key, PageOpts.coerce(opts))

    def read_sync(self, key: str, opts: PageOpts) -> list[Event]:
        if opts.limit is not None and opts.limit <= 0:
            return []

        query = f"SELECT author, seq, timestamp, type, content FROM {self.table} WHERE {self.scope} = ?"
        params: list[Any] = [key]
        if opts.gt is not None:
            query += " AND timestamp > ?"
            params.append(opts.gt)
        if opts.lt is not None:
            query += " AND timestamp < ?"
            params.append(opts.lt)
        query += " ORDER BY timestamp DESC, rowid DESC"
        if opts.limit is not None:
            query += " LIMIT ?"
            params.append(opts.limit)

        rows = store.ensure().execute(query, params).fetchall()
        logger.debug(f"Read {len(rows)} rows from {self.table} for {key}")
        return [_row_to_event(row) for row in rows]

    def next_seq(self, author: str) -> int:
        row = store.ensure().execute(
            f"SELECT MAX(seq) FROM {self.table} WHERE author = ?", (author,)
        ).fetchone()
        return (row[0] or 0) + 1

    def append(
        self,
        key: str,
        author: str,
        text: str | None = None,
        *,
        timestamp: float | None = None,
        type: str = CHAT_TEXT,
        content: dict | None = None,
    ) -> Event:
        if not key:
            raise ValueError(f"{self.scope} is required")
        if not author:
            raise ValueError("author is required")
        if content is None and text is not None:
            content = {"text": text}

        event = Event(
            key=author,
            seq=self.next_seq(author),
            value=EventValue(
                timestamp=float(timestamp) if timestamp is not None else now_ms(),
                type=type,
                content=content,
            ),
        )
        store.ensure().execute(
            f"INSERT INTO {self.table} ({self.scope}, author, seq, timestamp, type, content) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                key,
                author,
                event.seq,
                event.value.timestamp,
                event.value.type,
                json.dumps(content) if content is not None else None,
            ),
        )
        return event


def channel_log() -> SqliteMessageLog:
    return SqliteMessageLog("messages")


def private_log() -> SqliteMessageLog:
    return SqliteMessageLog("private_messages")
