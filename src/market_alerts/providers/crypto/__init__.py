"""Cryptocurrency price providers."""
from market_alerts.providers.crypto.coingecko.coin_gecko_provider import \
    CoinGeckoProvider
from market_alerts.providers.crypto.crypto_provider_abc import CryptoProviderABC

__all__ = ["CryptoProviderABC", "CoinGeckoProvider"]
