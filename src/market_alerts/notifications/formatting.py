"""Message text for alert notifications."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from market_alerts.db import AlertCondition, PriceAlert

ALERTS_URL = "/alerts"


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    tag: str
    url: str = ALERTS_URL


def format_price(price: Decimal | float) -> str:
    """1234.5 -> "1,234.50"; 0.5 -> "0.5000"; 42 -> "42.00"."""
    value = Decimal(str(price))
    if value >= 1000:
        return f"{value:,.2f}"
    if value < 10:
        return f"{value:.4f}"
    return f"{value:.2f}"


def _condition_value(alert: PriceAlert) -> str:
    return AlertCondition(alert.condition).value


def build_push_message(alert: PriceAlert, price: Decimal) -> PushMessage:
    return PushMessage(
        title=f"📊 {alert.asset_symbol} Alert Triggered!",
        body=(
            f"{alert.asset_name} is now ${format_price(price)} "
            f"({_condition_value(alert)} ${format_price(alert.target_price)})"
        ),
        tag=f"alert-{alert.id}",
    )


def email_subject(alert: PriceAlert) -> str:
    above = AlertCondition(alert.condition) == AlertCondition.ABOVE
    emoji = "📈" if above else "📉"
    movement = "risen above" if above else "fallen below"
    target = Decimal(str(alert.target_price))
    return f"{emoji} Price Alert: {alert.asset_name} {movement} ${target:,.2f}"


def email_html(alert: PriceAlert, price: Decimal, triggered_at: datetime) -> str:
    above = AlertCondition(alert.condition) == AlertCondition.ABOVE
    movement = "risen above" if above else "fallen below"
    color = "#22c55e" if above else "#ef4444"
    target = f"{Decimal(str(alert.target_price)):,.2f}"
    current = f"{Decimal(str(price)):,.2f}"
    when = triggered_at.strftime("%A, %B %d, %Y %H:%M %Z").strip()
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;background-color:#0a0a0a;font-family:Arial,sans-serif;">
  <div style="max-width:600px;margin:0 auto;padding:40px 20px;">
    <h1 style="color:#ffffff;font-size:28px;">Price Alert Triggered</h1>
    <h2 style="color:#ffffff;font-size:24px;margin:0;">{alert.asset_name}</h2>
    <p style="color:#888;font-size:14px;margin:0;">{alert.asset_symbol}</p>
    <p style="color:#a0a0a0;">Target Price: <strong style="color:#ffffff;">${target}</strong></p>
    <p style="color:#a0a0a0;">Current Price: <strong style="color:{color};">${current}</strong></p>
    <p style="color:{color};">{alert.asset_symbol} has {movement} your target of ${target}</p>
    <p style="color:#666;font-size:12px;">This alert was triggered on {when}</p>
    <p style="color:#555;font-size:11px;">You received this email because you set up a price alert.</p>
  </div>
</body>
</html>
"""
