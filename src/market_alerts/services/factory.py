"""Factory wiring providers, caches, channels and services from Settings."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.engine import Engine

from market_alerts.cache import HISTORY_TTL_SECONDS, LIVE_PRICE_TTL_SECONDS, TTLCache
from market_alerts.config import Settings
from market_alerts.db.store import AlertLifecycleStore
from market_alerts.notifications import PushGatewayChannel, ResendEmailChannel
from market_alerts.providers import (CoinGeckoProvider,
                                     ShanghaiBenchmarkProvider,
                                     YFinanceProvider)
from market_alerts.schemas import PriceSnapshot
from market_alerts.services.aggregator import PriceSourceAggregator
from market_alerts.services.alert_check import AlertCheckService
from market_alerts.services.dispatcher import NotificationDispatcher
from market_alerts.services.spread import GOLD_SPREAD, SILVER_SPREAD, SpreadService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Singletons shared by the HTTP app and the check-alerts job."""

    store: AlertLifecycleStore
    aggregator: PriceSourceAggregator
    alert_check: AlertCheckService
    spreads: dict[str, SpreadService]
    closeables: list = field(default_factory=list)

    async def close(self) -> None:
        """Close every upstream client; a failing close is logged and the rest still run."""
        for resource in self.closeables:
            try:
                await resource.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing %s: %s", type(resource).__name__, exc)


def create_services(settings: Settings, engine: Engine) -> Services:
    """Build the service graph.

    Args:
        settings: Runtime settings (API keys, timeouts).
        engine: SQLAlchemy engine for the alert store.

    Returns:
        A Services bundle; call close() on shutdown.
    """
    timeout = settings.provider_timeout_seconds
    yfinance = YFinanceProvider(quote_timeout=timeout)
    coingecko = CoinGeckoProvider(api_key=settings.coingecko_api_key, timeout=timeout)
    sge = ShanghaiBenchmarkProvider(timeout=timeout)
    email = ResendEmailChannel(settings.resend_api_key, settings.alert_email_from, timeout=timeout)
    push = PushGatewayChannel(settings.push_gateway_url, settings.push_gateway_token, timeout=timeout)

    store = AlertLifecycleStore(engine)
    aggregator = PriceSourceAggregator(
        [yfinance, coingecko],
        TTLCache[PriceSnapshot](LIVE_PRICE_TTL_SECONDS),
        TTLCache[Decimal](HISTORY_TTL_SECONDS),
        per_call_timeout=timeout,
        deadline=settings.cycle_deadline_seconds,
    )
    alert_check = AlertCheckService(store, aggregator, NotificationDispatcher(email, push))
    spreads = {
        config.metal: SpreadService(config, yfinance, sge)
        for config in (GOLD_SPREAD, SILVER_SPREAD)
    }
    return Services(
        store=store,
        aggregator=aggregator,
        alert_check=alert_check,
        spreads=spreads,
        closeables=[yfinance, coingecko, sge, email, push],
    )
