"""CoinGecko price provider for cryptocurrencies."""
import logging
import os
from decimal import Decimal

import httpx
from pydantic import ValidationError

from market_alerts.assets import find_asset
from market_alerts.providers.core import ProviderError
from market_alerts.providers.core.utils import normalize_crypto_id
from market_alerts.providers.crypto.coingecko.models import (
    CoinGeckoPriceRow, CoinGeckoSimplePriceParams)
from market_alerts.providers.crypto.crypto_provider_abc import CryptoProviderABC
from market_alerts.utils import to_decimal

logger = logging.getLogger(__name__)


class CoinGeckoProvider(CryptoProviderABC):
    """Price provider for cryptocurrencies via CoinGecko API.

    Registry crypto assets carry their CoinGecko id as ticker ("bitcoin",
    "ethereum"). All requested coins are quoted with one /simple/price call.
    """

    name = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko API key. Defaults to COINGECKO_API_KEY env var.
            use_pro_api: Whether to use the Pro API endpoint.
            client: Preconfigured HTTP client (tests inject a MockTransport client).
            timeout: HTTP timeout in seconds.
        """
        self._api_key = api_key or os.getenv("COINGECKO_API_KEY")
        self._use_pro_api = use_pro_api or bool(self._api_key)

        if client is not None:
            self._client = client
            return

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-pro-api-key"] = self._api_key

        base = self.PRO_BASE_URL if self._use_pro_api else self.BASE_URL
        self._client = httpx.AsyncClient(base_url=base, headers=headers, timeout=timeout)

    async def fetch_quote(self, asset_id: str) -> Decimal | None:
        """Fetch the current USD price for one crypto asset; None on any failure."""
        try:
            prices = await self.fetch_batch([asset_id])
        except ProviderError as e:
            logger.warning("CoinGecko quote for %s failed: %s", asset_id, e)
            return None
        return prices.get(asset_id)

    async def fetch_batch(self, asset_ids: list[str]) -> dict[str, Decimal]:
        """Fetch USD prices for the given crypto assets with a single request.

        Raises:
            ProviderError: On transport errors, non-2xx responses, or a payload
                that is not a JSON object.
        """
        coin_to_asset: dict[str, str] = {}
        for asset_id in asset_ids:
            asset = find_asset(asset_id)
            if asset is None or not self.supports(asset):
                logger.debug("CoinGecko skipping unsupported asset %s", asset_id)
                continue
            coin_to_asset[normalize_crypto_id(asset.ticker)] = asset.id
        if not coin_to_asset:
            return {}

        params = CoinGeckoSimplePriceParams().model_dump() | {
            "ids": ",".join(sorted(coin_to_asset)),
        }
        try:
            response = await self._client.get("/simple/price", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e!r}") from e
        except ValueError as e:
            raise ProviderError(self.name, "malformed JSON payload") from e

        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected payload shape")

        prices: dict[str, Decimal] = {}
        for coin_id, asset_id in coin_to_asset.items():
            raw = data.get(coin_id)
            if not isinstance(raw, dict):
                continue
            try:
                row = CoinGeckoPriceRow.model_validate(raw)
            except ValidationError:
                logger.warning("CoinGecko returned a malformed row for %s", coin_id)
                continue
            price = to_decimal(row.usd)
            if price is not None:
                prices[asset_id] = price
        return prices

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
