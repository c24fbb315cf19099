import asyncio

import pytest

from chatline.bridge import ChannelState, is_date_marker
from chatline.lib.errors import LogReadFailure
from chatline.lib.timestamps import DAY_MS, day_key
from tests.conftest import FakeLog, make_message


def persisted(log: FakeLog, clock=None, name: str = "general", **kwargs) -> ChannelState:
    return ChannelState.persisted(name, log, clock=clock, **kwargs)


@pytest.mark.asyncio
async def test_same_author_same_instant_with_date_marker(fake_log):
    first, second = make_message("a", 1, 1000), make_message("a", 2, 1000)
    fake_log.add("general", second, first)
    channel = persisted(fake_log)

    page = await channel.get_page({"limit": 5})

    assert len(page) == 3
    marker = page[0]
    assert is_date_marker(marker)
    assert marker.timestamp == 0
    assert marker.key == "general"
    assert page[1:] == [first, second]


@pytest.mark.asyncio
async def test_reads_channel_log_with_request_window(fake_log):
    channel = persisted(fake_log)

    await channel.get_page({"limit": 7, "gt": 10, "lt": 99})

    key, opts = fake_log.reads[0]
    assert key == "general"
    assert (opts.limit, opts.gt, opts.lt) == (7, 10.0, 99.0)


@pytest.mark.asyncio
async def test_page_never_exceeds_limit_and_is_sorted(fake_log, clock):
    fake_log.add(
        "general",
        *[make_message(author, seq, ts) for author, seq, ts in [
            ("a", 1, 5000), ("b", 1, 3000), ("a", 2, 5000), ("c", 4, 100), ("b", 2, DAY_MS + 1),
        ]],
    )
    channel = persisted(fake_log, clock)
    channel.add_virtual_message({"timestamp": 4000, "text": "topic changed"})

    for limit in (1, 2, 3, 10, 50):
        page = await channel.get_page({"limit": limit})
        assert len(page) <= limit
        stamps = [e.timestamp for e in page]
        assert stamps == sorted(stamps)

    page = await channel.get_page({"limit": 50})
    same_instant = [e for e in page if e.key == "a" and e.timestamp == 5000]
    assert [e.seq for e in same_instant] == [1, 2]


@pytest.mark.asyncio
async def test_limit_larger_than_data_returns_everything(fake_log):
    fake_log.add("general", make_message("a", 1, 10))
    page = await persisted(fake_log).get_page({"limit": 100})
    assert len(page) == 2


@pytest.mark.asyncio
async def test_one_marker_per_day_across_overlapping_pages(fake_log):
    day0 = [make_message("a", 1, 1000), make_message("b", 1, 2000)]
    day1 = [make_message("a", 2, DAY_MS + 5), make_message("b", 2, DAY_MS + 10)]
    fake_log.add("general", *day0, *day1)
    channel = persisted(fake_log)

    pages = [
        await channel.get_page({"limit": 2}),
        await channel.get_page({"limit": 10}),
        await channel.get_page({"limit": 10, "gt": 1500}),
        await channel.get_page({"limit": 10}),
    ]

    for page in pages:
        days = [e.timestamp for e in page if is_date_marker(e)]
        assert len(days) == len(set(days))

    markers = [e for e in channel.get_virtual_messages({}) if is_date_marker(e)]
    assert sorted(e.timestamp for e in markers) == [0, DAY_MS]
    assert channel.dates_seen == {0, DAY_MS}

    full = pages[-1]
    assert [is_date_marker(e) for e in full] == [True, False, False, True, False, False]


@pytest.mark.asyncio
async def test_markers_only_for_days_in_batch(fake_log):
    fake_log.add("general", make_message("a", 1, 3 * DAY_MS + 7))
    channel = persisted(fake_log)

    await channel.get_page({"limit": 10})

    assert channel.dates_seen == {day_key(3 * DAY_MS + 7)}


@pytest.mark.asyncio
async def test_failed_read_leaves_no_trace(fake_log):
    fake_log.add("general", make_message("a", 1, 1000))
    channel = persisted(fake_log)
    fake_log.error = OSError("disk gone")

    with pytest.raises(LogReadFailure) as excinfo:
        await channel.get_page({"limit": 10})

    assert isinstance(excinfo.value.__cause__, OSError)
    assert channel.dates_seen == set()
    assert channel.get_virtual_messages({}) == []

    fake_log.error = None
    page = await channel.get_page({"limit": 10})
    assert is_date_marker(page[0])


@pytest.mark.asyncio
async def test_read_timeout_is_a_read_failure(fake_log):
    fake_log.add("general", make_message("a", 1, 1000))
    fake_log.delay = 1
    channel = persisted(fake_log, read_timeout=0.01)

    with pytest.raises(LogReadFailure, match="timed out"):
        await channel.get_page({"limit": 10})

    assert channel.dates_seen == set()


@pytest.mark.asyncio
async def test_cancelled_read_marks_nothing_seen(fake_log):
    fake_log.add("general", make_message("a", 1, 1000))
    fake_log.gate = asyncio.Event()
    channel = persisted(fake_log)

    task = asyncio.create_task(channel.get_page({"limit": 10}))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert channel.dates_seen == set()


@pytest.mark.asyncio
async def test_appends_during_read_are_merged(fake_log):
    fake_log.add("general", make_message("a", 1, 1000))
    fake_log.gate = asyncio.Event()
    channel = persisted(fake_log)

    task = asyncio.create_task(channel.get_page({"limit": 10}))
    await asyncio.sleep(0.01)
    channel.add_virtual_message({"timestamp": 1500, "text": "bob joined"})
    channel.add_member("bob")
    fake_log.gate.set()
    page = await task

    assert [e.timestamp for e in page] == [0, 1000, 1500]
    assert page[-1].value.content == {"text": "bob joined"}


@pytest.mark.asyncio
async def test_virtual_only_channel_pages_buffer(clock):
    channel = ChannelState.virtual("!status", clock=clock)
    for text in ("one", "two", "three"):
        channel.add_virtual_message({"text": text})

    page = await channel.get_page({"limit": 2})

    assert [e.value.content["text"] for e in page] == ["two", "three"]
    assert channel.dates_seen == set()


@pytest.mark.asyncio
async def test_virtual_only_channel_respects_bounds(clock):
    channel = ChannelState.virtual("!status", clock=clock)
    for ts in (10, 20, 30):
        channel.add_virtual_message({"timestamp": ts, "text": str(ts)})

    page = await channel.get_page({"limit": 10, "gt": 10, "lt": "junk"})

    assert [e.timestamp for e in page] == [20, 30]


@pytest.mark.asyncio
async def test_direct_channel_reads_by_recipient(fake_log):
    peer = "ab" * 32
    fake_log.add(peer, make_message(peer, 1, 2000))
    channel = ChannelState.direct(peer, fake_log)

    page = await channel.get_page({"limit": 10})

    assert fake_log.reads[0][0] == peer
    assert len(page) == 2
    assert page[1].key == peer


@pytest.mark.asyncio
async def test_zero_limit_returns_empty_page(fake_log):
    fake_log.add("general", make_message("a", 1, 1000))
    assert await persisted(fake_log).get_page({"limit": 0}) == []
