"""Channel state: membership, unread/mention tracking, and paged timelines.

One ``ChannelState`` per channel. The ``kind`` tag picks the backing log:
persisted channels read the shared message log, direct-message channels read
the private log keyed by recipient, virtual channels have no log at all.

Every mutation takes the channel lock. ``get_page`` awaits the log read
without it and only locks for marker insertion and the merge, so appends that
land while the read is pending are part of the page.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from chatline.core.models import ChannelKind, ChannelSummary, Event, PageOpts
from chatline.lib import config
from chatline.lib.errors import LogReadFailure
from chatline.lib.timestamps import now_ms

from . import timeline
from .logs import MessageLog
from .virtual import VirtualEventStore

logger = logging.getLogger(__name__)


class ChannelState:
    def __init__(
        self,
        name: str,
        kind: ChannelKind = ChannelKind.VIRTUAL,
        log: MessageLog | None = None,
        clock: Callable[[], float] | None = None,
        read_timeout: float | None = None,
    ):
        if kind is not ChannelKind.VIRTUAL and log is None:
            raise ValueError(f"{kind.value} channel '{name}' needs a message log")

        self.name = name
        self.kind = kind
        self.log = log if kind is not ChannelKind.VIRTUAL else None
        self.read_timeout = read_timeout

        self.is_private = False
        self.recipient: str | None = None
        self.members: set[str] = set()
        self.mentions: list[Any] = []
        # archived channels are hidden from channel listings
        self.archived = False
        self.new_message_count = 0
        self.dates_seen: set[float] = set()
        self.last_read = 0.0
        self.joined = kind is ChannelKind.VIRTUAL
        self.focused = False
        self.topic = ""

        self._virtual = VirtualEventStore(name, clock)
        self._lock = threading.RLock()

    @classmethod
    def persisted(cls, name: str, log: MessageLog, **kwargs) -> "ChannelState":
        return cls(name, ChannelKind.PERSISTED, log, **kwargs)

    @classmethod
    def virtual(cls, name: str, **kwargs) -> "ChannelState":
        return cls(name, ChannelKind.VIRTUAL, **kwargs)

    @classmethod
    def direct(cls, pubkey: str, log: MessageLog, **kwargs) -> "ChannelState":
        channel = cls(pubkey, ChannelKind.DIRECT, log, **kwargs)
        channel.recipient = pubkey
        channel.is_private = True
        channel.topic = f"private message with {pubkey}"
        channel.joined = True
        channel.members.add(pubkey)
        return channel

    def __str__(self) -> str:
        if self.kind is ChannelKind.DIRECT:
            return f"PM-{self.recipient[:8]}"
        return self.name

    def __repr__(self) -> str:
        return f"ChannelState({self.name!r}, {self.kind.value})"

    def archive(self) -> None:
        with self._lock:
            self.archived = True

    def unarchive(self) -> None:
        with self._lock:
            self.archived = False

    def set_topic(self, topic: str | None) -> None:
        with self._lock:
            self.topic = topic or ""

    def add_member(self, key: str) -> None:
        with self._lock:
            self.members.add(key)

    def remove_member(self, key: str) -> None:
        with self._lock:
            self.members.discard(key)

    def get_members(self) -> list[str]:
        with self._lock:
            return list(self.members)

    def add_mention(self, mention: Any) -> None:
        with self._lock:
            if not self.focused:
                self.mentions.append(mention)

    def get_mentions(self) -> list[Any]:
        with self._lock:
            return list(self.mentions)

    def handle_message(self, message: Event | Mapping[str, Any]) -> None:
        # Counts every delivery; a redelivered message is counted again.
        with self._lock:
            if not self.focused:
                self.new_message_count += 1

    def get_new_message_count(self) -> int:
        with self._lock:
            return self.new_message_count

    def mark_as_read(self) -> None:
        with self._lock:
            self.last_read = now_ms()
            self.new_message_count = 0
            self.mentions = []

    def focus(self) -> None:
        with self._lock:
            self.focused = True

    def unfocus(self) -> None:
        with self._lock:
            self.focused = False

    def join(self) -> bool:
        """Join the channel. Returns True if we were already in it."""
        with self._lock:
            joined = self.joined
            self.joined = True
            return joined

    def leave(self) -> bool:
        """Leave the channel. Returns True if we were in it."""
        with self._lock:
            joined = self.joined
            self.joined = False
            return joined

    def add_virtual_message(self, msg: Event | Mapping[str, Any]) -> Event:
        """Buffer a status line or other synthetic event.

        Accepts an ``Event``, its dict form, or ``{timestamp?, type?, text}``.
        """
        with self._lock:
            return self._virtual.add(msg)

    def get_virtual_messages(self, opts: PageOpts | Mapping[str, Any] | None = None) -> list[Event]:
        with self._lock:
            return self._virtual.select(PageOpts.coerce(opts))

    def clear_virtual_messages(self) -> None:
        with self._lock:
            self._virtual.clear()

    def summary(self) -> ChannelSummary:
        with self._lock:
            return ChannelSummary(
                name=self.name,
                kind=self.kind,
                topic=self.topic,
                members=sorted(self.members),
                new_message_count=self.new_message_count,
                mention_count=len(self.mentions),
                joined=self.joined,
                archived=self.archived,
            )

    async def get_page(self, opts: PageOpts | Mapping[str, Any] | None = None) -> list[Event]:
        """Merged, time-ordered page of log messages and virtual events.

        Raises:
            LogReadFailure: The backing log read failed or timed out. Channel
                state is left as it was before the call.
        """
        opts = PageOpts.coerce(opts)
        messages = await self._read(opts)

        with self._lock:
            for day in timeline.unseen_days(messages, self.dates_seen):
                self.dates_seen.add(day)
                self._virtual.add(timeline.date_marker(self.name, day))
                logger.debug(f"{self.name}: date marker for day {day:.0f}")
            page = timeline.interleave(list(reversed(messages)), self._virtual.select(opts), opts)

        logger.debug(f"{self.name}: page of {len(page)} from {len(messages)} messages")
        return page

    async def _read(self, opts: PageOpts) -> list[Event]:
        if self.log is None:
            return []

        key = self.recipient if self.kind is ChannelKind.DIRECT else self.name
        timeout = self.read_timeout if self.read_timeout is not None else config.get("read_timeout")
        try:
            messages = await asyncio.wait_for(self.log.read(key, opts), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{self.name}: log read timed out after {timeout}s")
            raise LogReadFailure(key, f"timed out after {timeout}s") from e
        except LogReadFailure:
            raise
        except Exception as e:
            logger.warning(f"{self.name}: log read failed: {e}")
            raise LogReadFailure(key, str(e)) from e
        return list(messages)
