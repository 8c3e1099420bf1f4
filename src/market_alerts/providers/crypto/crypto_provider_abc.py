"""Abstract base class for cryptocurrency price providers."""
from market_alerts.db import AssetCategory
from market_alerts.providers.core import PriceProviderABC


class CryptoProviderABC(PriceProviderABC):
    """Base interface for cryptocurrency price providers.

    Crypto APIs quote many coins in one request, so implementations override
    fetch_batch with a single call and derive fetch_quote from it.
    """

    categories = frozenset({AssetCategory.CRYPTO})
