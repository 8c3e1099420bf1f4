"""Shared utilities for price providers."""
from decimal import ROUND_HALF_UP, Decimal

DECIMALS = 2


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock/futures ticker (uppercase)."""
    return symbol.upper()


def normalize_crypto_id(symbol: str) -> str:
    """Normalize a CoinGecko/crypto ID (lowercase)."""
    return symbol.lower()


def round2(x: float | Decimal | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    quantized = Decimal(str(x)).quantize(Decimal(1).scaleb(-DECIMALS), rounding=ROUND_HALF_UP)
    return float(quantized)
