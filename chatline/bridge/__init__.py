"""Bridge: channel state and timeline pages.

Channel state: membership, mentions, unread count, focus/join/archive flags.
Virtual events: status lines and date markers kept in memory only.
Pages: persisted log messages merged with virtual events, windowed.
"""

from . import channels, logs, timeline
from .channels import ChannelState
from .logs import MessageLog, SqliteMessageLog, channel_log, private_log
from .registry import ChannelRegistry
from .timeline import DATE_CHANGED, compare_events, is_date_marker
from .virtual import VirtualEventStore

__all__ = [
    "DATE_CHANGED",
    "ChannelRegistry",
    "ChannelState",
    "MessageLog",
    "SqliteMessageLog",
    "VirtualEventStore",
    "channel_log",
    "channels",
    "compare_events",
    "is_date_marker",
    "logs",
    "private_log",
    "timeline",
]
