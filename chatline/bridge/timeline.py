"""Timeline merge: date markers, tie-break ordering, page windowing."""

from collections.abc import Iterable
from functools import cmp_to_key

from chatline.core.models import Event, EventValue, PageOpts
from chatline.lib.timestamps import day_key

DATE_CHANGED = "status/date-changed"


def compare_events(a: Event, b: Event) -> float:
    """Order by timestamp; same author at the same instant orders by seq.

    Anything else that ties compares equal so the sort keeps input order.
    """
    diff = a.timestamp - b.timestamp
    if diff == 0 and a.key and b.key and a.key == b.key and a.has_seq and b.has_seq:
        return a.seq - b.seq
    return diff


_sort_key = cmp_to_key(compare_events)


def merge(virtual: Iterable[Event], messages: Iterable[Event]) -> list[Event]:
    """Combine both sources and sort. Virtual events go first so they lead on ties."""
    return sorted([*virtual, *messages], key=_sort_key)


def interleave(messages: list[Event], virtual: list[Event], opts: PageOpts) -> list[Event]:
    return opts.window(merge(virtual, messages))


def unseen_days(messages: list[Event], seen: set[float]) -> list[float]:
    """Day keys in ``messages`` not yet in ``seen``, newest message first.

    Does not modify ``seen``.
    """
    days: list[float] = []
    for msg in reversed(messages):
        day = day_key(msg.timestamp)
        if day not in seen and day not in days:
            days.append(day)
    return days


def date_marker(channel: str, day: float) -> Event:
    return Event(key=channel, value=EventValue(timestamp=day, type=DATE_CHANGED))


def is_date_marker(event: Event) -> bool:
    return event.type == DATE_CHANGED
