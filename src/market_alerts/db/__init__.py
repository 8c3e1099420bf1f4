"""Database package: models, session management, and the alert lifecycle store."""
from market_alerts.db.models import (AlertCondition, AssetCategory,
                                     DigestFrequency, NotificationPreferences,
                                     PriceAlert, User)

__all__ = [
    "AlertCondition",
    "AssetCategory",
    "DigestFrequency",
    "NotificationPreferences",
    "PriceAlert",
    "User",
]
