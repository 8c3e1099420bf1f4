"""Pure threshold evaluation of alerts against a price snapshot."""
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from market_alerts.db import AlertCondition, PriceAlert
from market_alerts.schemas import PriceSnapshot


@dataclass(frozen=True)
class TriggeredAlert:
    """An alert whose threshold was crossed, with the price that crossed it."""

    alert: PriceAlert
    observed_price: Decimal


def should_trigger(condition: AlertCondition, price: Decimal, target: Decimal) -> bool:
    """Inclusive comparison: above fires at price >= target, below at price <= target."""
    if condition == AlertCondition.ABOVE:
        return price >= target
    if condition == AlertCondition.BELOW:
        return price <= target
    return False


def evaluate(alerts: Iterable[PriceAlert], snapshot: PriceSnapshot) -> list[TriggeredAlert]:
    """Return the alerts whose condition holds at the snapshot price.

    Alerts that are paused or already triggered are ignored, as are alerts whose
    asset has no price in the snapshot. Alerts are not modified.
    """
    triggered: list[TriggeredAlert] = []
    for alert in alerts:
        if not alert.is_evaluable:
            continue
        price = snapshot.get(alert.asset_id)
        if price is None:
            continue
        if should_trigger(alert.condition, price, Decimal(str(alert.target_price))):
            triggered.append(TriggeredAlert(alert=alert, observed_price=price))
    return triggered
