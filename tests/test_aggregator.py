"""Tests for the price source aggregator."""
from decimal import Decimal

import pytest

from conftest import crypto_provider, failing, metals_provider
from market_alerts.cache import TTLCache
from market_alerts.schemas import SnapshotStatus
from market_alerts.services.aggregator import PriceSourceAggregator

GOLD = Decimal("2005.10")
BTC = Decimal("64000")


def make_aggregator(providers, clock, **kwargs):
    return PriceSourceAggregator(
        providers,
        TTLCache(60.0, clock=clock),
        TTLCache(300.0, clock=clock),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_all_sources_live(clock):
    aggregator = make_aggregator(
        [metals_provider({"gold": GOLD}), crypto_provider({"bitcoin": BTC})], clock
    )
    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.status is SnapshotStatus.LIVE
    assert snapshot.prices == {"gold": GOLD, "bitcoin": BTC}
    assert snapshot.failed_sources == []


@pytest.mark.asyncio
async def test_one_source_down_yields_partial(clock):
    aggregator = make_aggregator(
        [metals_provider({"gold": GOLD}), failing(crypto_provider)], clock
    )
    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.status is SnapshotStatus.PARTIAL
    assert snapshot.prices == {"gold": GOLD}
    assert snapshot.failed_sources == ["coingecko"]


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained(clock):
    broken = crypto_provider()
    broken.error = RuntimeError("boom")
    aggregator = make_aggregator([metals_provider({"gold": GOLD}), broken], clock)

    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.prices == {"gold": GOLD}
    assert snapshot.status is SnapshotStatus.PARTIAL


@pytest.mark.asyncio
async def test_slow_provider_times_out_without_blocking_others(clock):
    slow = crypto_provider({"bitcoin": BTC}, delay=1.0)
    aggregator = make_aggregator(
        [metals_provider({"gold": GOLD}), slow], clock, per_call_timeout=0.05
    )
    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.prices == {"gold": GOLD}
    assert snapshot.failed_sources == ["coingecko"]


@pytest.mark.asyncio
async def test_deadline_keeps_prices_that_settled_in_time(clock):
    slow = crypto_provider({"bitcoin": BTC}, delay=1.0)
    aggregator = make_aggregator(
        [metals_provider({"gold": GOLD}), slow], clock, per_call_timeout=5.0, deadline=0.05
    )
    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.prices == {"gold": GOLD}
    assert snapshot.status is SnapshotStatus.PARTIAL


@pytest.mark.asyncio
async def test_live_snapshot_is_reused_within_ttl(clock):
    metals = metals_provider({"gold": GOLD})
    aggregator = make_aggregator([metals], clock)

    first = await aggregator.fetch_snapshot(["gold"])
    clock.advance(30)
    second = await aggregator.fetch_snapshot(["GOLD "])

    assert second is first
    assert len(metals.calls) == 1

    clock.advance(31)
    await aggregator.fetch_snapshot(["gold"])
    assert len(metals.calls) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_requery(clock):
    metals = metals_provider({"gold": GOLD})
    aggregator = make_aggregator([metals], clock)

    await aggregator.fetch_snapshot(["gold"])
    aggregator.invalidate(["gold"])
    await aggregator.fetch_snapshot(["gold"])

    assert len(metals.calls) == 2


@pytest.mark.asyncio
async def test_partial_snapshot_is_reused_within_ttl(clock):
    metals = metals_provider({"gold": GOLD})
    crypto = failing(crypto_provider)
    aggregator = make_aggregator([metals, crypto], clock)

    first = await aggregator.fetch_snapshot(["gold", "bitcoin"])
    second = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert first.status is SnapshotStatus.PARTIAL
    assert second is first
    assert len(metals.calls) == 1
    assert len(crypto.calls) == 1

    clock.advance(61)
    await aggregator.fetch_snapshot(["gold", "bitcoin"])
    assert len(crypto.calls) == 2

    aggregator.invalidate(["bitcoin", "gold"])
    await aggregator.fetch_snapshot(["gold", "bitcoin"])
    assert len(crypto.calls) == 3


@pytest.mark.asyncio
async def test_all_sources_down_uses_last_known_prices(clock):
    metals = metals_provider({"gold": GOLD})
    aggregator = make_aggregator([metals], clock)
    await aggregator.fetch_snapshot(["gold"])

    clock.advance(61)
    metals.error = RuntimeError("upstream down")
    snapshot = await aggregator.fetch_snapshot(["gold"])

    assert snapshot.status is SnapshotStatus.CACHED
    assert snapshot.prices == {"gold": GOLD}
    assert not snapshot.is_fresh


@pytest.mark.asyncio
async def test_all_sources_down_and_nothing_cached(clock):
    aggregator = make_aggregator(
        [failing(metals_provider), failing(crypto_provider)], clock
    )
    snapshot = await aggregator.fetch_snapshot(["gold", "bitcoin"])

    assert snapshot.status is SnapshotStatus.UNAVAILABLE
    assert snapshot.prices == {}
    assert snapshot.failed_sources == ["coingecko", "yfinance"]
    assert not snapshot.is_available


@pytest.mark.asyncio
async def test_unknown_assets_are_omitted(clock):
    metals = metals_provider({"gold": GOLD})
    aggregator = make_aggregator([metals], clock)

    snapshot = await aggregator.fetch_snapshot(["gold", "dogecoin"])

    assert snapshot.prices == {"gold": GOLD}
    assert snapshot.status is SnapshotStatus.LIVE
    assert metals.calls == [["gold"]]


@pytest.mark.asyncio
async def test_empty_request(clock):
    metals = metals_provider({"gold": GOLD})
    aggregator = make_aggregator([metals], clock)

    snapshot = await aggregator.fetch_snapshot([])

    assert snapshot.prices == {}
    assert metals.calls == []
