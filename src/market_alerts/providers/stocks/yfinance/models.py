"""Models for YFinance provider."""
from decimal import Decimal

from pydantic import BaseModel


class TickerQuote(BaseModel):
    """Last price and previous close for a raw Yahoo ticker (e.g. "GLD", "CNY=X")."""

    ticker: str
    price: Decimal
    previous_close: Decimal | None = None
    provider: str = "yfinance"
