"""Core provider abstractions."""
from market_alerts.providers.core.exceptions import ProviderError
from market_alerts.providers.core.price_provider_abc import PriceProviderABC
from market_alerts.providers.core.utils import round2

__all__ = [
    "PriceProviderABC",
    "ProviderError",
    "round2",
]
