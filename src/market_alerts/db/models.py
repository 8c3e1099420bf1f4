"""Database models for the price alert service.

Only user/application state is persisted. Prices are fetched on demand and cached
in memory per cycle; they are not stored in PostgreSQL.
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class AssetCategory(str, Enum):
    """Asset class; decides which upstream provider quotes the asset."""

    METAL = "metal"
    INDEX = "index"
    CRYPTO = "crypto"


class AlertCondition(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class DigestFrequency(str, Enum):
    INSTANT = "instant"
    DAILY = "daily"
    WEEKLY = "weekly"


class User(SQLModel, table=True):
    """User account; only the email is needed to deliver alerts."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    email: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=_utcnow)


class PriceAlert(SQLModel, table=True):
    """One-shot price alert for a user.

    Once is_triggered is set, is_active is false and triggered_at /
    triggered_price are fixed for good.
    """

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    asset_id: str = Field(index=True)
    asset_name: str
    asset_symbol: str
    target_price: Decimal = Field(max_digits=20, decimal_places=8, gt=0)
    condition: AlertCondition
    is_active: bool = Field(default=True)
    is_triggered: bool = Field(default=False)
    triggered_at: datetime | None = None
    triggered_price: Decimal | None = Field(default=None, max_digits=20, decimal_places=8)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_evaluable(self) -> bool:
        """True while the alert is waiting for its threshold."""
        return self.is_active and not self.is_triggered


class NotificationPreferences(SQLModel, table=True):
    """Per-user notification settings; created lazily with these defaults."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="user.id", unique=True, index=True)
    email_enabled: bool = True
    push_enabled: bool = True
    email_digest: bool = False
    digest_frequency: DigestFrequency = DigestFrequency.INSTANT
    quiet_hours_enabled: bool = False
    quiet_hours_start: str | None = "22:00"  # HH:MM, user local time
    quiet_hours_end: str | None = "08:00"
    timezone: str = "UTC"  # IANA name used to compute the user's local time
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
