"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from market_alerts.utils import utcnow


class SnapshotStatus(str, Enum):
    """How a snapshot was assembled.

    live: every routed asset was priced; partial: some sources failed or came
    back empty; cached: no source answered, last-known prices were used;
    unavailable: no source answered and nothing was cached.
    """

    LIVE = "live"
    PARTIAL = "partial"
    CACHED = "cached"
    UNAVAILABLE = "unavailable"


class PriceSnapshot(BaseModel):
    """Prices for all requested assets as observed in one evaluation cycle."""

    model_config = ConfigDict(frozen=True)

    prices: dict[str, Decimal] = Field(default_factory=dict)
    status: SnapshotStatus = SnapshotStatus.LIVE
    fetched_at: datetime = Field(default_factory=utcnow)
    failed_sources: list[str] = Field(default_factory=list)

    def get(self, asset_id: str) -> Decimal | None:
        return self.prices.get(asset_id)

    @property
    def is_available(self) -> bool:
        return self.status is not SnapshotStatus.UNAVAILABLE

    @property
    def is_fresh(self) -> bool:
        """True when prices came from providers in this cycle (not a fallback)."""
        return self.status in (SnapshotStatus.LIVE, SnapshotStatus.PARTIAL)

    @classmethod
    def unavailable(cls, failed_sources: list[str]) -> "PriceSnapshot":
        return cls(status=SnapshotStatus.UNAVAILABLE, failed_sources=failed_sources)


class CycleResult(BaseModel):
    """Outcome of one alert evaluation cycle (response of POST /alerts/check)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    triggered: int = 0
    triggered_alerts: list[str] = Field(
        default_factory=list, serialization_alias="triggeredAlerts"
    )
    timestamp: datetime = Field(default_factory=utcnow)
    snapshot_status: SnapshotStatus | None = Field(
        default=None, serialization_alias="snapshotStatus"
    )


class ErrorResponse(BaseModel):
    """Failure body for endpoints that report {success: false, error}."""

    success: bool = False
    error: str


class SpreadDirection(str, Enum):
    PREMIUM = "premium"
    DISCOUNT = "discount"
    NEUTRAL = "neutral"


class ComexPrice(BaseModel):
    price: float  # USD per troy oz
    change: float
    change_percent: float
    source: str = "COMEX (Yahoo Finance)"


class ShanghaiPrice(BaseModel):
    price_usd: float  # converted to USD per troy oz
    price_cny: float  # as published, per unit
    unit: str  # "g" or "kg"
    session: str
    source: str = "Shanghai Gold Exchange"


class Spread(BaseModel):
    value: float  # Shanghai - COMEX, USD
    percent: float
    direction: SpreadDirection


class ExchangeRate(BaseModel):
    usdcny: float
    source: str = "Yahoo Finance"


class MetalSpread(BaseModel):
    """Shanghai vs COMEX price of one metal; shanghai/spread are None when SGE is unavailable."""

    metal: str
    comex: ComexPrice
    shanghai: ShanghaiPrice | None = None
    spread: Spread | None = None
    exchange_rate: ExchangeRate
    data_source: str = "live"  # live | partial | cached
    last_updated: datetime = Field(default_factory=utcnow)


__all__ = [
    "ComexPrice",
    "CycleResult",
    "ErrorResponse",
    "ExchangeRate",
    "MetalSpread",
    "PriceSnapshot",
    "ShanghaiPrice",
    "SnapshotStatus",
    "Spread",
    "SpreadDirection",
]
