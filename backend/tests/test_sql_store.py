"""
Tests for the SQLite candle store.
"""

import asyncio

from cryptoscan.db import close_db, create_engine, create_session_factory, init_db
from cryptoscan.schemas.market import Candle
from cryptoscan.services.candles import InMemoryCandleStore, SqlCandleStore

from conftest import AS_OF, DAY, make_candles


def _run_with_store(scenario):
    """Run `scenario(store)` against a fresh in-memory database."""

    async def run():
        engine = create_engine(":memory:")
        await init_db(engine)
        try:
            return await scenario(SqlCandleStore(create_session_factory(engine)))
        finally:
            await close_db(engine)

    return asyncio.run(run())


def test_save_and_query_range():
    candles = make_candles("BTC-USD", [100.0, 101.0, 102.0, 103.0])

    async def scenario(store):
        written = await store.save_candles(candles)
        window = await store.get_candles("BTC-USD", AS_OF - 2 * DAY, AS_OF)
        return written, window

    written, window = _run_with_store(scenario)
    assert written == 4
    assert [c.close for c in window] == [101.0, 102.0, 103.0]
    assert [c.timestamp for c in window] == sorted(c.timestamp for c in window)
    assert window[-1] == candles[-1]


def test_upsert_overwrites_same_timestamp():
    original = make_candles("ETH-USD", [10.0, 11.0])
    revised = Candle(
        pair="ETH-USD",
        timestamp=AS_OF,
        open=10.0,
        high=13.0,
        low=9.5,
        close=12.5,
        volume=5000.0,
    )

    async def scenario(store):
        await store.save_candles(original)
        await store.save_candles([revised])
        return await store.get_candles("ETH-USD", 0, AS_OF)

    stored = _run_with_store(scenario)
    assert len(stored) == 2
    assert stored[-1].close == 12.5
    assert stored[-1].volume == 5000.0


def test_distinct_pairs_and_health():
    async def scenario(store):
        await store.save_candles(make_candles("SOL-USD", [1.0, 2.0]))
        await store.save_candles(make_candles("ADA-USD", [1.0]))
        return await store.get_all_pairs(), await store.health_check()

    pairs, healthy = _run_with_store(scenario)
    assert pairs == ["ADA-USD", "SOL-USD"]
    assert healthy


def test_unknown_pair_is_empty():
    async def scenario(store):
        return await store.get_candles("NOPE-USD", 0, AS_OF), await store.save_candles([])

    candles, written = _run_with_store(scenario)
    assert candles == []
    assert written == 0


def test_memory_store_matches_range_semantics():
    store = InMemoryCandleStore(make_candles("BTC-USD", [1.0, 2.0, 3.0]))
    store.add_candles(make_candles("BTC-USD", [9.0], end_ts=AS_OF))

    candles = asyncio.run(store.get_candles("BTC-USD", AS_OF - DAY, AS_OF))
    assert [c.close for c in candles] == [2.0, 9.0]
    assert asyncio.run(store.get_all_pairs()) == ["BTC-USD"]

    store.clear()
    assert asyncio.run(store.get_all_pairs()) == []


def test_large_backfill_is_written_in_batches():
    # 5000 rows x 7 columns exceeds SQLite's bound-variable limit for one statement
    closes = [100.0 + (i % 50) for i in range(5000)]
    candles = make_candles("BACKFILL-USD", closes)

    async def scenario(store):
        written = await store.save_candles(candles)
        return written, await store.get_candles("BACKFILL-USD", 0, AS_OF)

    written, stored = _run_with_store(scenario)
    assert written == 5000
    assert len(stored) == 5000
    assert stored[0].timestamp == AS_OF - 4999 * DAY
    assert stored[-1].close == closes[-1]
