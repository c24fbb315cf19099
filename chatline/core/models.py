import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChannelKind(str, Enum):
    PERSISTED = "persisted"
    VIRTUAL = "virtual"
    DIRECT = "direct"


def to_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def _to_limit(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass
class EventValue:
    timestamp: float
    type: str
    content: dict | None = None


@dataclass
class Event:
    """One timeline entry: a persisted message or a virtual event.

    Persisted messages carry the author key and a per-author ``seq``.
    Virtual events are keyed by the channel name and have no ``seq``.
    """

    key: str
    value: EventValue
    seq: int | None = None

    @property
    def timestamp(self) -> float:
        return float(self.value.timestamp)

    @property
    def type(self) -> str:
        return self.value.type

    @property
    def has_seq(self) -> bool:
        return self.seq is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        value = data["value"]
        return cls(
            key=data.get("key"),
            seq=data.get("seq"),
            value=EventValue(
                timestamp=float(value["timestamp"]),
                type=value.get("type", "status"),
                content=value.get("content"),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        value: dict[str, Any] = {"timestamp": self.value.timestamp, "type": self.value.type}
        if self.value.content is not None:
            value["content"] = self.value.content
        data: dict[str, Any] = {"key": self.key}
        if self.seq is not None:
            data["seq"] = self.seq
        data["value"] = value
        return data


@dataclass
class PageOpts:
    """Window of a page request. ``None`` means unbounded."""

    limit: int | None = None
    gt: float | None = None
    lt: float | None = None

    @classmethod
    def coerce(cls, opts: "PageOpts | Mapping[str, Any] | None") -> "PageOpts":
        """Normalize caller options. Malformed numbers are read as absent."""
        if opts is None:
            return cls()
        if isinstance(opts, PageOpts):
            return cls(limit=_to_limit(opts.limit), gt=to_float(opts.gt), lt=to_float(opts.lt))
        return cls(
            limit=_to_limit(opts.get("limit")),
            gt=to_float(opts.get("gt")),
            lt=to_float(opts.get("lt")),
        )

    @property
    def lower(self) -> float:
        return -math.inf if self.gt is None else self.gt

    @property
    def upper(self) -> float:
        return math.inf if self.lt is None else self.lt

    def contains(self, timestamp: float) -> bool:
        return self.lower < timestamp < self.upper

    def window(self, events: list) -> list:
        """Keep the last ``limit`` entries."""
        if self.limit is None:
            return list(events)
        if self.limit <= 0:
            return []
        return events[-self.limit :]


@dataclass
class ChannelSummary:
    name: str
    kind: ChannelKind
    topic: str = ""
    members: list[str] = field(default_factory=list)
    new_message_count: int = 0
    mention_count: int = 0
    joined: bool = False
    archived: bool = False
