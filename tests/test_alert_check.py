"""End-to-end tests for one alert evaluation cycle."""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlmodel import SQLModel, create_engine

from conftest import FakePushChannel, crypto_provider, failing, metals_provider
from market_alerts.cache import TTLCache
from market_alerts.db import AlertCondition
from market_alerts.db.store import AlertLifecycleStore, TransitionResult
from market_alerts.errors import NoPriceDataError
from market_alerts.schemas import SnapshotStatus
from market_alerts.services import (AlertCheckService, NotificationDispatcher,
                                    PriceSourceAggregator)

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


def make_service(store, providers, email_channel, push_channel, clock=None):
    kwargs = {"clock": clock} if clock else {}
    aggregator = PriceSourceAggregator(
        providers, TTLCache(60.0, **kwargs), TTLCache(300.0, **kwargs)
    )
    return AlertCheckService(
        store, aggregator, NotificationDispatcher(email_channel, push_channel)
    )


@pytest.mark.asyncio
async def test_no_active_alerts(store, email_channel, push_channel):
    metals = metals_provider({"gold": Decimal("2005")})
    service = make_service(store, [metals], email_channel, push_channel)

    result = await service.run_cycle(NOW)

    assert result.success is True
    assert result.triggered == 0
    assert result.message == "No active alerts"
    assert metals.calls == []


@pytest.mark.asyncio
async def test_gold_above_target_triggers_once(store, user, email_channel, push_channel):
    hit = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    miss = store.create_alert(user.id, "gold", Decimal("2100"), AlertCondition.ABOVE)
    service = make_service(
        store, [metals_provider({"gold": Decimal("2005")})], email_channel, push_channel
    )

    result = await service.run_cycle(NOW)

    assert result.triggered == 1
    assert result.triggered_alerts == [hit.id]
    assert result.snapshot_status is SnapshotStatus.LIVE
    assert store.get_alert(hit.id).is_triggered
    assert store.get_alert(miss.id).is_active
    assert email_channel.sent == [("trader@example.com", hit.id, Decimal("2005"))]
    assert [p["alert_id"] for p in push_channel.sent] == [hit.id]

    again = await service.run_cycle(NOW)
    assert again.triggered == 0
    assert len(email_channel.sent) == 1


@pytest.mark.asyncio
async def test_conflicting_transition_is_not_notified(
    store, user, email_channel, push_channel, monkeypatch
):
    alert = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    service = make_service(
        store, [metals_provider({"gold": Decimal("2005")})], email_channel, push_channel
    )
    # Another cycle wins the transition between our read and our write.
    monkeypatch.setattr(
        store, "mark_triggered", lambda *args: TransitionResult.CONFLICT
    )

    result = await service.run_cycle(NOW)

    assert result.triggered == 0
    assert email_channel.sent == [] and push_channel.sent == []
    assert store.get_alert(alert.id).is_active


@pytest.mark.asyncio
async def test_store_failure_isolated_per_alert(store, user, email_channel, push_channel, monkeypatch):
    gold = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    btc = store.create_alert(user.id, "bitcoin", Decimal("70000"), AlertCondition.BELOW)
    service = make_service(
        store,
        [metals_provider({"gold": Decimal("2005")}), crypto_provider({"bitcoin": Decimal("64000")})],
        email_channel,
        push_channel,
    )
    real_mark = store.mark_triggered

    def flaky_mark(alert_id, price, timestamp):
        if alert_id == gold.id:
            raise RuntimeError("database hiccup")
        return real_mark(alert_id, price, timestamp)

    monkeypatch.setattr(store, "mark_triggered", flaky_mark)

    result = await service.run_cycle(NOW)

    assert result.triggered_alerts == [btc.id]
    assert [p["alert_id"] for p in push_channel.sent] == [btc.id]


@pytest.mark.asyncio
async def test_channel_failure_keeps_alert_triggered(store, user, email_channel):
    alert = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    service = make_service(
        store,
        [metals_provider({"gold": Decimal("2005")})],
        email_channel,
        FakePushChannel(error=RuntimeError("gateway down")),
    )

    result = await service.run_cycle(NOW)

    assert result.triggered_alerts == [alert.id]
    assert store.get_alert(alert.id).is_triggered
    assert len(email_channel.sent) == 1


@pytest.mark.asyncio
async def test_partial_snapshot_still_evaluates_priced_assets(store, user, email_channel, push_channel):
    gold = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    store.create_alert(user.id, "bitcoin", Decimal("1"), AlertCondition.ABOVE)
    service = make_service(
        store,
        [metals_provider({"gold": Decimal("2005")}), failing(crypto_provider)],
        email_channel,
        push_channel,
    )

    result = await service.run_cycle(NOW)

    assert result.triggered_alerts == [gold.id]
    assert result.snapshot_status is SnapshotStatus.PARTIAL


@pytest.mark.asyncio
async def test_no_prices_at_all_raises(store, user, email_channel, push_channel):
    alert = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    service = make_service(store, [failing(metals_provider)], email_channel, push_channel)

    with pytest.raises(NoPriceDataError):
        await service.run_cycle(NOW)

    assert store.get_alert(alert.id).is_active


@pytest.mark.asyncio
async def test_cached_prices_do_not_trigger(store, user, email_channel, push_channel, clock):
    metals = metals_provider({"gold": Decimal("1990")})
    alert = store.create_alert(user.id, "gold", Decimal("1980"), AlertCondition.BELOW)
    service = make_service(store, [metals], email_channel, push_channel, clock=clock)
    await service.run_cycle(NOW)

    clock.advance(61)
    metals.prices = {"gold": Decimal("1970")}
    metals.error = RuntimeError("upstream down")
    result = await service.run_cycle(NOW)

    assert result.success is True
    assert result.triggered == 0
    assert result.snapshot_status is SnapshotStatus.CACHED
    assert store.get_alert(alert.id).is_active


@pytest.mark.asyncio
async def test_quiet_hours_trigger_without_notifying(store, user, email_channel, push_channel):
    alert = store.create_alert(user.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    store.update_preferences(
        user.id, quiet_hours_enabled=True, quiet_hours_start="10:00", quiet_hours_end="14:00"
    )
    service = make_service(
        store, [metals_provider({"gold": Decimal("2005")})], email_channel, push_channel
    )

    result = await service.run_cycle(NOW)

    assert result.triggered_alerts == [alert.id]
    assert store.get_alert(alert.id).is_triggered
    assert email_channel.sent == [] and push_channel.sent == []


@pytest.fixture
def file_store(tmp_path):
    """Store on a file database so concurrent cycles use separate connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'alerts.db'}", connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)
    yield AlertLifecycleStore(engine)
    engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_cycles_notify_once(file_store, email_channel, push_channel):
    owner = file_store.create_user("trader@example.com")
    file_store.get_preferences([owner.id])
    alert = file_store.create_alert(owner.id, "gold", Decimal("2000"), AlertCondition.ABOVE)
    services = [
        make_service(
            file_store,
            [metals_provider({"gold": Decimal("2005")})],
            email_channel,
            push_channel,
        )
        for _ in range(3)
    ]

    results = await asyncio.gather(*(s.run_cycle(NOW) for s in services))

    assert sum(r.triggered for r in results) == 1
    assert [r.triggered_alerts for r in results if r.triggered] == [[alert.id]]
    assert email_channel.sent == [("trader@example.com", alert.id, Decimal("2005"))]
    assert len(push_channel.sent) == 1
    assert file_store.get_alert(alert.id).is_triggered
