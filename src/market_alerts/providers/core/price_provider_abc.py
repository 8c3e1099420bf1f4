"""Abstract base class for upstream price providers."""
import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal

from market_alerts.assets import Asset
from market_alerts.db import AssetCategory

logger = logging.getLogger(__name__)


class PriceProviderABC(ABC):
    """Base interface for all price providers.

    Each provider quotes the asset categories it declares in `categories`.
    fetch_quote returns None when the upstream has no usable price; fetch_batch
    returns only the assets it could price and raises ProviderError when the
    upstream as a whole failed, so the aggregator can record the outage.
    """

    name: str = "provider"
    categories: frozenset[AssetCategory] = frozenset()

    def supports(self, asset: Asset) -> bool:
        """Whether this provider is responsible for the asset's category."""
        return asset.category in self.categories

    @abstractmethod
    async def fetch_quote(self, asset_id: str) -> Decimal | None:
        """Fetch the current price for one asset.

        Args:
            asset_id: Registry asset id (e.g., "gold", "bitcoin").

        Returns:
            The price, or None if the upstream failed or returned no usable data.
        """

    async def fetch_batch(self, asset_ids: list[str]) -> dict[str, Decimal]:
        """Fetch prices for several assets; default is one fetch_quote per asset in parallel."""
        results = await asyncio.gather(
            *(self.fetch_quote(a) for a in asset_ids),
            return_exceptions=True,
        )
        prices: dict[str, Decimal] = {}
        for asset_id, result in zip(asset_ids, results):
            if isinstance(result, BaseException):
                logger.warning("%s: quote for %s failed: %s", self.name, asset_id, result)
                continue
            if result is not None:
                prices[asset_id] = result
        return prices

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "PriceProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
