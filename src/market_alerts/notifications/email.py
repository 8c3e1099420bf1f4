"""Email delivery through the Resend REST API."""
import logging
from decimal import Decimal

import httpx

from market_alerts.db import PriceAlert
from market_alerts.notifications.formatting import email_html, email_subject
from market_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class ResendEmailChannel:
    """Sends alert emails via https://api.resend.com/emails.

    Without an API key every send is a logged no-op returning False.
    """

    BASE_URL = "https://api.resend.com"

    def __init__(
        self,
        api_key: str | None,
        sender: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._client = client or httpx.AsyncClient(base_url=self.BASE_URL, timeout=timeout)

    async def send(self, recipient: str, alert: PriceAlert, price: Decimal) -> bool:
        if not self._api_key:
            logger.warning("RESEND_API_KEY not set; email for alert %s not sent", alert.id)
            return False
        payload = {
            "from": self._sender,
            "to": [recipient],
            "subject": email_subject(alert),
            "html": email_html(alert, price, utcnow()),
        }
        try:
            response = await self._client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Resend rejected email for alert %s: HTTP %d", alert.id, e.response.status_code
            )
            return False
        except httpx.HTTPError as e:
            logger.warning("Resend request for alert %s failed: %r", alert.id, e)
            return False
        logger.info("Alert email sent for %s", alert.id)
        return True

    async def close(self) -> None:
        await self._client.aclose()
