"""Yahoo Finance price provider for metals futures and indices."""
import asyncio
import logging
from decimal import Decimal

import yfinance as yf

from market_alerts.assets import find_asset
from market_alerts.providers.core.utils import normalize_stock_symbol
from market_alerts.providers.stocks.stocks_provider_abc import \
    StocksProviderABC
from market_alerts.providers.stocks.yfinance.models import TickerQuote
from market_alerts.utils import to_decimal

logger = logging.getLogger(__name__)


class YFinanceProvider(StocksProviderABC):
    """Price provider for futures and indices via Yahoo Finance.

    Uses the yfinance library (no API key). Registry assets map to Yahoo
    tickers: gold -> GC=F, sp500 -> ^GSPC, and so on. yfinance is blocking,
    so every lookup runs in a worker thread.
    """

    name = "yfinance"

    def _extract_quote(self, ticker: yf.Ticker, symbol: str) -> TickerQuote:
        """Extract last price and previous close; raises ValueError if price unavailable."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            prev = info.get("previousClose") or info.get("regularMarketPreviousClose")
        else:
            full = ticker.info
            price = full.get("currentPrice") or full.get("regularMarketPrice")
            prev = full.get("previousClose") or full.get("regularMarketPreviousClose")
        value = to_decimal(price)
        if value is None:
            raise ValueError(f"Ticker '{symbol}' not found or has no price data")
        return TickerQuote(ticker=symbol, price=value, previous_close=to_decimal(prev))

    def _fetch_ticker_sync(self, symbol: str) -> TickerQuote:
        """Fetch a single ticker synchronously (run in thread)."""
        ticker = yf.Ticker(symbol)
        try:
            return self._extract_quote(ticker, symbol)
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to fetch quote for '{symbol}': {e}") from e

    async def fetch_ticker_quote(self, symbol: str) -> TickerQuote | None:
        """Fetch a raw Yahoo ticker; None if Yahoo has no usable price."""
        sym = normalize_stock_symbol(symbol)
        try:
            return await asyncio.to_thread(self._fetch_ticker_sync, sym)
        except ValueError as e:
            logger.warning("Yahoo Finance quote failed: %s", e)
            return None

    async def fetch_quote(self, asset_id: str) -> Decimal | None:
        """Fetch the current price for a metal or index asset."""
        asset = find_asset(asset_id)
        if asset is None or not self.supports(asset):
            logger.debug("yfinance skipping unsupported asset %s", asset_id)
            return None
        quote = await self.fetch_ticker_quote(asset.ticker)
        return quote.price if quote else None
