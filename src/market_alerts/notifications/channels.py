"""Channel interfaces consumed by the notification dispatcher."""
from decimal import Decimal
from typing import Protocol

from market_alerts.db import PriceAlert


class EmailChannel(Protocol):
    """Sends one alert email. Returns False (never raises) when delivery failed."""

    async def send(self, recipient: str, alert: PriceAlert, price: Decimal) -> bool:
        ...


class PushChannel(Protocol):
    """Delivers one push notification to all of a user's subscriptions."""

    async def send(
        self,
        user_id: str,
        title: str,
        body: str,
        tag: str,
        alert_id: str,
        url: str,
    ) -> bool:
        ...
