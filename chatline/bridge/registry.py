"""Channel lookup: a channel's state is created on first reference."""

import logging
import threading
from collections.abc import Callable

from chatline.core.models import ChannelKind, ChannelSummary

from .channels import ChannelState
from .logs import MessageLog

logger = logging.getLogger(__name__)


def _channel_name(name: str) -> str:
    name = name.lstrip("#")
    if not name:
        raise ValueError("Channel name is required")
    return name


class ChannelRegistry:
    """Channel states for one client, keyed by channel name or DM peer key."""

    def __init__(
        self,
        messages: MessageLog,
        private_messages: MessageLog,
        clock: Callable[[], float] | None = None,
        read_timeout: float | None = None,
    ):
        self.messages = messages
        self.private_messages = private_messages
        self._options = {"clock": clock, "read_timeout": read_timeout}
        self._channels: dict[str, ChannelState] = {}
        self._direct: dict[str, ChannelState] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> ChannelState:
        name = _channel_name(name)
        return self._get_or_create(
            self._channels, name, lambda: ChannelState.persisted(name, self.messages, **self._options)
        )

    def get_virtual(self, name: str) -> ChannelState:
        name = _channel_name(name)
        return self._get_or_create(
            self._channels, name, lambda: ChannelState.virtual(name, **self._options)
        )

    def get_direct(self, pubkey: str) -> ChannelState:
        if not pubkey:
            raise ValueError("Peer key is required")
        return self._get_or_create(
            self._direct,
            pubkey,
            lambda: ChannelState.direct(pubkey, self.private_messages, **self._options),
        )

    def _get_or_create(
        self, table: dict[str, ChannelState], key: str, factory: Callable[[], ChannelState]
    ) -> ChannelState:
        with self._lock:
            channel = table.get(key)
            if channel is None:
                channel = factory()
                table[key] = channel
                logger.debug(f"Created {channel.kind.value} channel {channel}")
            return channel

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._channels)

    def direct_peers(self) -> list[str]:
        with self._lock:
            return sorted(self._direct)

    def kind_of(self, name: str) -> ChannelKind | None:
        with self._lock:
            channel = self._channels.get(name.lstrip("#"))
        return channel.kind if channel else None

    def list_channels(self, archived: bool = False) -> list[ChannelSummary]:
        """Summaries of public and virtual channels. Archived ones only on request."""
        with self._lock:
            channels = sorted(self._channels.values(), key=lambda c: c.name)
        return [c.summary() for c in channels if archived or not c.archived]

    def total_new_messages(self) -> int:
        with self._lock:
            channels = [*self._channels.values(), *self._direct.values()]
        return sum(c.get_new_message_count() for c in channels)
