"""Upstream price providers for metals, indices, and crypto.

- YFinanceProvider: metals futures and indices via Yahoo Finance
- CoinGeckoProvider: cryptocurrencies via CoinGecko API
- ShanghaiBenchmarkProvider: Shanghai Gold and Silver Benchmarks (for the spreads)

Price providers implement PriceProviderABC and return Decimal prices keyed by
registry asset id.

Example:
    async with CoinGeckoProvider() as provider:
        prices = await provider.fetch_batch(["bitcoin", "ethereum"])
        print(prices["bitcoin"])
"""
from market_alerts.providers.core import PriceProviderABC, ProviderError
from market_alerts.providers.crypto import CoinGeckoProvider, CryptoProviderABC
from market_alerts.providers.sge import ShanghaiBenchmarkProvider
from market_alerts.providers.stocks import StocksProviderABC, YFinanceProvider

__all__ = [
    "PriceProviderABC",
    "ProviderError",
    "CryptoProviderABC",
    "StocksProviderABC",
    "YFinanceProvider",
    "CoinGeckoProvider",
    "ShanghaiBenchmarkProvider",
]
