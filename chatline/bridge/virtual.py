"""In-memory buffer of synthetic channel events: status lines and date markers."""

from collections.abc import Callable, Mapping
from typing import Any

from chatline.core.models import Event, EventValue, PageOpts, to_float
from chatline.lib.timestamps import MonotonicClock, stable_sort

STATUS = "status"


class VirtualEventStore:
    """Unordered buffer of events that never reach the persisted log.

    Not locked on its own: the owning channel serializes access.
    """

    def __init__(self, name: str, clock: Callable[[], float] | None = None):
        self.name = name
        self.clock = clock or MonotonicClock()
        self._events: list[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def normalize(self, msg: Event | Mapping[str, Any]) -> Event:
        """Turn shorthand ``{timestamp?, type?, text}`` into a full event."""
        if isinstance(msg, Event):
            return msg
        if "value" in msg:
            value = dict(msg["value"] or {})
            value["timestamp"] = self._timestamp(value.get("timestamp"))
            event = Event.from_dict({**msg, "value": value})
            if event.key is None:
                event.key = self.name
            return event
        return Event(
            key=self.name,
            value=EventValue(
                timestamp=self._timestamp(msg.get("timestamp")),
                type=msg.get("type") or STATUS,
                content={"text": msg.get("text")},
            ),
        )

    def _timestamp(self, value: Any) -> float:
        # Missing or malformed timestamps fall back to the clock
        timestamp = to_float(value)
        return self.clock() if timestamp is None else timestamp

    def add(self, msg: Event | Mapping[str, Any]) -> Event:
        event = self.normalize(msg)
        self._events.append(event)
        return event

    def clear(self) -> None:
        self._events = []

    def select(self, opts: PageOpts) -> list[Event]:
        """Events strictly inside ``(gt, lt)``, oldest first, last ``limit`` kept."""
        filtered = [e for e in self._events if opts.contains(e.timestamp)]
        return opts.window(stable_sort(filtered, key=lambda e: e.timestamp))

    def snapshot(self) -> list[Event]:
        return list(self._events)
