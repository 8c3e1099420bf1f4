"""Push delivery through a web-push gateway that holds user subscriptions."""
import logging

import httpx

logger = logging.getLogger(__name__)


class PushGatewayChannel:
    """Posts push notifications to PUSH_GATEWAY_URL.

    The gateway fans out to every subscription registered for the user.
    Without a gateway URL every send is a logged no-op returning False.
    """

    def __init__(
        self,
        gateway_url: str | None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = gateway_url
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.AsyncClient(headers=headers, timeout=timeout)

    async def send(
        self,
        user_id: str,
        title: str,
        body: str,
        tag: str,
        alert_id: str,
        url: str,
    ) -> bool:
        if not self._url:
            logger.warning("PUSH_GATEWAY_URL not set; push for alert %s not sent", alert_id)
            return False
        payload = {
            "userId": user_id,
            "title": title,
            "body": body,
            "tag": tag,
            "alertId": alert_id,
            "url": url,
        }
        try:
            response = await self._client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Push gateway rejected alert %s: HTTP %d", alert_id, e.response.status_code
            )
            return False
        except httpx.HTTPError as e:
            logger.warning("Push gateway request for alert %s failed: %r", alert_id, e)
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
