"""Abstract base class for equity/futures price providers (metals and indices)."""
import asyncio
import logging
from decimal import Decimal

from market_alerts.db import AssetCategory
from market_alerts.providers.core import PriceProviderABC, ProviderError

logger = logging.getLogger(__name__)


class StocksProviderABC(PriceProviderABC):
    """Base interface for equity/futures providers.

    These upstreams quote one ticker per request, so fetch_batch fans out one
    fetch_quote per asset, each under its own timeout.
    """

    categories = frozenset({AssetCategory.METAL, AssetCategory.INDEX})

    def __init__(self, quote_timeout: float = 10.0) -> None:
        self._quote_timeout = quote_timeout

    async def _quote_with_timeout(self, asset_id: str) -> Decimal | None:
        try:
            return await asyncio.wait_for(self.fetch_quote(asset_id), self._quote_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s: quote for %s timed out after %.1fs", self.name, asset_id, self._quote_timeout)
            return None

    async def fetch_batch(self, asset_ids: list[str]) -> dict[str, Decimal]:
        """Fetch all assets in parallel; raises ProviderError if none could be priced."""
        if not asset_ids:
            return {}
        results = await asyncio.gather(
            *(self._quote_with_timeout(a) for a in asset_ids),
            return_exceptions=True,
        )
        prices: dict[str, Decimal] = {}
        for asset_id, result in zip(asset_ids, results):
            if isinstance(result, BaseException):
                logger.warning("%s: quote for %s failed: %s", self.name, asset_id, result)
            elif result is not None:
                prices[asset_id] = result
        if not prices:
            raise ProviderError(self.name, f"no quotes for {', '.join(asset_ids)}")
        return prices
