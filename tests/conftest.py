import asyncio

import pytest

from chatline.core.models import Event, EventValue, PageOpts
from chatline.lib import config, paths, store


@pytest.fixture
def test_space(monkeypatch, tmp_path):
    """Isolated chatline directory and database per test.

    ALL tests using store.ensure() must accept this fixture to ensure isolation.
    """
    store._reset_for_testing()
    config.clear_cache()

    dot_dir = tmp_path / ".chatline"
    dot_dir.mkdir()
    monkeypatch.setattr(paths, "dot_dir", lambda: dot_dir)

    store.ensure()

    yield dot_dir

    store._reset_for_testing()
    config.clear_cache()


def make_message(key: str, seq: int, timestamp: float, text: str = "hi") -> Event:
    return Event(
        key=key,
        seq=seq,
        value=EventValue(timestamp=timestamp, type="chat/text", content={"text": text}),
    )


class FakeLog:
    """In-memory message log. Reads return newest first, like the SQLite log."""

    def __init__(self, messages: dict[str, list[Event]] | None = None):
        self.messages = messages or {}
        self.reads: list[tuple[str, PageOpts]] = []
        self.error: Exception | None = None
        self.delay: float = 0
        self.gate: asyncio.Event | None = None

    def add(self, key: str, *events: Event) -> None:
        self.messages.setdefault(key, []).extend(events)

    async def read(self, key, opts):
        self.reads.append((key, opts))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        found = [m for m in self.messages.get(key, []) if opts.contains(m.timestamp)]
        found.sort(key=lambda m: m.timestamp, reverse=True)
        return found if opts.limit is None else found[: opts.limit]


@pytest.fixture
def fake_log():
    return FakeLog()


@pytest.fixture
def clock():
    """Deterministic clock: 1000, 1001, 1002, ..."""
    state = {"now": 999.0}

    def tick() -> float:
        state["now"] += 1
        return state["now"]

    return tick
