"""Equity/futures price providers (metals and indices)."""
from market_alerts.providers.stocks.stocks_provider_abc import StocksProviderABC
from market_alerts.providers.stocks.yfinance.y_finance_provider import \
    YFinanceProvider

__all__ = ["StocksProviderABC", "YFinanceProvider"]
