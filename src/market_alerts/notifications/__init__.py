"""Notification channels (email, push) and message formatting."""
from market_alerts.notifications.channels import EmailChannel, PushChannel
from market_alerts.notifications.email import ResendEmailChannel
from market_alerts.notifications.push import PushGatewayChannel

__all__ = ["EmailChannel", "PushChannel", "ResendEmailChannel", "PushGatewayChannel"]
