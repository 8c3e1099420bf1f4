"""Notification dispatcher: decides which channels fire for a triggered alert."""
import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from market_alerts.db import DigestFrequency, NotificationPreferences, PriceAlert
from market_alerts.notifications import EmailChannel, PushChannel
from market_alerts.notifications.formatting import build_push_message
from market_alerts.services.quiet_hours import is_quiet, local_now

logger = logging.getLogger(__name__)


class ChannelStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DispatchResult:
    alert_id: str
    quiet: bool = False
    email: ChannelStatus = ChannelStatus.SKIPPED
    push: ChannelStatus = ChannelStatus.SKIPPED


def wants_instant_email(prefs: NotificationPreferences) -> bool:
    """False when the user batches email into a daily/weekly digest."""
    if not prefs.email_digest:
        return True
    return DigestFrequency(prefs.digest_frequency) == DigestFrequency.INSTANT


class NotificationDispatcher:
    """Sends email and push for one triggered alert, honoring user preferences.

    A failing channel is logged and reported as FAILED; it never affects the
    other channel or the alert's triggered state.
    """

    def __init__(self, email_channel: EmailChannel, push_channel: PushChannel) -> None:
        self._email = email_channel
        self._push = push_channel

    async def _guarded(self, channel: str, alert_id: str, call: Awaitable[bool]) -> ChannelStatus:
        try:
            ok = await call
        except Exception:  # pylint: disable=broad-except
            logger.exception("%s notification for alert %s raised", channel, alert_id)
            return ChannelStatus.FAILED
        if not ok:
            logger.warning("%s notification for alert %s failed", channel, alert_id)
            return ChannelStatus.FAILED
        return ChannelStatus.SENT

    async def _skipped(self) -> ChannelStatus:
        return ChannelStatus.SKIPPED

    async def dispatch(
        self,
        alert: PriceAlert,
        observed_price: Decimal,
        prefs: NotificationPreferences,
        recipient: str | None = None,
        now: datetime | None = None,
    ) -> DispatchResult:
        if is_quiet(prefs, local_now(prefs, now)):
            logger.info("Quiet hours for user %s; alert %s not notified", alert.user_id, alert.id)
            return DispatchResult(alert_id=alert.id, quiet=True)

        # Build every message before creating any send coroutine.
        message = build_push_message(alert, observed_price) if prefs.push_enabled else None
        send_email = bool(prefs.email_enabled and recipient and wants_instant_email(prefs))
        if prefs.email_enabled and not recipient:
            logger.warning("No email address for user %s; skipping email", alert.user_id)

        if send_email:
            email = self._guarded("email", alert.id, self._email.send(recipient, alert, observed_price))
        else:
            email = self._skipped()

        if message is not None:
            push = self._guarded(
                "push",
                alert.id,
                self._push.send(
                    alert.user_id,
                    message.title,
                    message.body,
                    message.tag,
                    alert.id,
                    message.url,
                ),
            )
        else:
            push = self._skipped()

        email_status, push_status = await asyncio.gather(email, push)
        return DispatchResult(alert_id=alert.id, email=email_status, push=push_status)
