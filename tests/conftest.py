"""Shared fixtures: in-memory database, fake providers and channels, fake clock."""
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from market_alerts.db import AssetCategory, PriceAlert
from market_alerts.db.store import AlertLifecycleStore
from market_alerts.providers.core import PriceProviderABC, ProviderError


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(PriceProviderABC):
    """Provider returning canned prices; can fail or stall on demand."""

    def __init__(
        self,
        name: str,
        categories: set[AssetCategory],
        prices: dict[str, Decimal] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.categories = frozenset(categories)
        self.prices = dict(prices or {})
        self.error = error
        self.delay = delay
        self.calls: list[list[str]] = []

    async def fetch_quote(self, asset_id: str) -> Decimal | None:
        return self.prices.get(asset_id)

    async def fetch_batch(self, asset_ids: list[str]) -> dict[str, Decimal]:
        self.calls.append(list(asset_ids))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {a: self.prices[a] for a in asset_ids if a in self.prices}


def metals_provider(prices=None, **kwargs) -> FakeProvider:
    return FakeProvider(
        "yfinance", {AssetCategory.METAL, AssetCategory.INDEX}, prices, **kwargs
    )


def crypto_provider(prices=None, **kwargs) -> FakeProvider:
    return FakeProvider("coingecko", {AssetCategory.CRYPTO}, prices, **kwargs)


def failing(provider_factory, message: str = "HTTP 500"):
    provider = provider_factory()
    provider.error = ProviderError(provider.name, message)
    return provider


class FakeEmailChannel:
    def __init__(self, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.sent: list[tuple[str, str, Decimal]] = []

    async def send(self, recipient: str, alert: PriceAlert, price: Decimal) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append((recipient, alert.id, price))
        return self.result


class FakePushChannel:
    def __init__(self, result: bool = True, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.sent: list[dict] = []

    async def send(self, user_id, title, body, tag, alert_id, url) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "user_id": user_id,
                "title": title,
                "body": body,
                "tag": tag,
                "alert_id": alert_id,
                "url": url,
            }
        )
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> AlertLifecycleStore:
    return AlertLifecycleStore(engine)


@pytest.fixture
def user(store):
    return store.create_user("trader@example.com")


@pytest.fixture
def email_channel() -> FakeEmailChannel:
    return FakeEmailChannel()


@pytest.fixture
def push_channel() -> FakePushChannel:
    return FakePushChannel()
