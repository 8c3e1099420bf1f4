"""Shanghai vs COMEX spreads for gold and silver."""
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from market_alerts.cache import HISTORY_TTL_SECONDS, LIVE_PRICE_TTL_SECONDS, TTLCache
from market_alerts.errors import SpreadUnavailableError
from market_alerts.providers.core import round2
from market_alerts.providers.sge import (GOLD_BENCHMARK, SILVER_BENCHMARK,
                                         ShanghaiBenchmark,
                                         ShanghaiBenchmarkProvider)
from market_alerts.providers.sge.models import ShanghaiBenchmarkQuote
from market_alerts.providers.stocks import YFinanceProvider
from market_alerts.providers.stocks.yfinance.models import TickerQuote
from market_alerts.schemas import (ComexPrice, ExchangeRate, MetalSpread,
                                   ShanghaiPrice, Spread, SpreadDirection)
from market_alerts.utils import utcnow

logger = logging.getLogger(__name__)

GRAMS_PER_TROY_OZ = Decimal("31.1035")
DEFAULT_USDCNY = Decimal("7.25")
NEUTRAL_BAND_USD = Decimal("0.5")
SILVER_NEUTRAL_BAND_USD = Decimal("0.1")
USDCNY_TICKER = "CNY=X"


@dataclass(frozen=True)
class SpreadConfig:
    """How to price one metal on both exchanges.

    COMEX spot is approximated from a physically backed ETF: ETF price divided
    by the ounces of metal held per share.
    """

    metal: str
    etf_ticker: str
    etf_oz_per_share: Decimal
    benchmark: ShanghaiBenchmark
    plausible_range: tuple[Decimal, Decimal] | None = None  # USD/oz
    neutral_band: Decimal = NEUTRAL_BAND_USD  # USD/oz either side of zero


GOLD_SPREAD = SpreadConfig("gold", "GLD", Decimal("0.091"), GOLD_BENCHMARK)
SILVER_SPREAD = SpreadConfig(
    "silver",
    "SLV",
    Decimal("0.885"),
    SILVER_BENCHMARK,
    plausible_range=(Decimal("20"), Decimal("100")),
    neutral_band=SILVER_NEUTRAL_BAND_USD,
)


def cny_to_usd_per_oz(price_cny: Decimal, unit_grams: int, usdcny: Decimal) -> Decimal:
    """CNY per quoted unit (g or kg) -> USD per troy ounce."""
    return price_cny / unit_grams * GRAMS_PER_TROY_OZ / usdcny


def spread_direction(value: Decimal, band: Decimal = NEUTRAL_BAND_USD) -> SpreadDirection:
    if value > band:
        return SpreadDirection.PREMIUM
    if value < -band:
        return SpreadDirection.DISCOUNT
    return SpreadDirection.NEUTRAL


def comex_from_etf(quote: TickerQuote, oz_per_share: Decimal) -> ComexPrice:
    price = quote.price / oz_per_share
    prev = quote.previous_close / oz_per_share if quote.previous_close else None
    change = price - prev if prev else Decimal(0)
    change_percent = change / prev * 100 if prev else Decimal(0)
    return ComexPrice(
        price=round2(price),
        change=round2(change),
        change_percent=round2(change_percent),
    )


def build_spread(
    config: SpreadConfig,
    etf: TickerQuote,
    sge: ShanghaiBenchmarkQuote | None,
    usdcny: Decimal | None,
) -> MetalSpread:
    """Assemble the spread; Shanghai fields are None when the SGE quote is missing."""
    rate = usdcny or DEFAULT_USDCNY
    comex_price = etf.price / config.etf_oz_per_share
    shanghai = spread = None
    if sge is not None:
        shanghai_usd = cny_to_usd_per_oz(sge.price_cny, sge.unit_grams, rate)
        shanghai = ShanghaiPrice(
            price_usd=round2(shanghai_usd),
            price_cny=float(sge.price_cny),
            unit="kg" if sge.unit_grams == 1000 else "g",
            session=sge.session.value,
        )
        value = shanghai_usd - comex_price
        spread = Spread(
            value=round2(value),
            percent=round2(value / comex_price * 100),
            direction=spread_direction(value, config.neutral_band),
        )
    return MetalSpread(
        metal=config.metal,
        comex=comex_from_etf(etf, config.etf_oz_per_share),
        shanghai=shanghai,
        spread=spread,
        exchange_rate=ExchangeRate(usdcny=float(rate)),
        data_source="live" if sge is not None else "partial",
        last_updated=utcnow(),
    )


class SpreadService:
    """Fetches the ETF quote, the SGE benchmark and USD/CNY concurrently.

    Results are cached for a minute. When COMEX data cannot be fetched the
    last complete result is served with data_source="cached".
    """

    def __init__(
        self,
        config: SpreadConfig,
        yfinance: YFinanceProvider,
        sge: ShanghaiBenchmarkProvider,
        cache: TTLCache[MetalSpread] | None = None,
        fallback_cache: TTLCache[MetalSpread] | None = None,
    ) -> None:
        self.config = config
        self._yfinance = yfinance
        self._sge = sge
        self._cache = cache if cache is not None else TTLCache(LIVE_PRICE_TTL_SECONDS)
        self._fallback = (
            fallback_cache if fallback_cache is not None else TTLCache(HISTORY_TTL_SECONDS)
        )

    def _from_fallback(self, reason: str) -> MetalSpread:
        cached, found = self._fallback.get(self.config.metal)
        if not found:
            raise SpreadUnavailableError(reason)
        logger.warning("Serving cached %s spread: %s", self.config.metal, reason)
        return cached.model_copy(update={"data_source": "cached"})

    def _plausible(self, etf: TickerQuote) -> bool:
        if self.config.plausible_range is None:
            return True
        low, high = self.config.plausible_range
        spot = etf.price / self.config.etf_oz_per_share
        if low <= spot <= high:
            return True
        logger.warning(
            "Suspicious %s spot price %.2f from %s; ignoring",
            self.config.metal,
            spot,
            self.config.etf_ticker,
        )
        return False

    async def get_spread(self) -> MetalSpread:
        """Current Shanghai vs COMEX spread.

        Raises:
            SpreadUnavailableError: COMEX data is unavailable and nothing is cached.
        """
        metal = self.config.metal
        cached, found = self._cache.get(metal)
        if found:
            return cached

        etf, sge, fx = await asyncio.gather(
            self._yfinance.fetch_ticker_quote(self.config.etf_ticker),
            self._sge.fetch_benchmark(self.config.benchmark),
            self._yfinance.fetch_ticker_quote(USDCNY_TICKER),
            return_exceptions=True,
        )
        for name, result in ((self.config.etf_ticker, etf), ("SGE", sge), ("USD/CNY", fx)):
            if isinstance(result, BaseException):
                logger.warning("%s spread input %s failed: %s", metal, name, result)
        if isinstance(sge, BaseException):
            sge = None
        if isinstance(fx, BaseException):
            fx = None
        if etf is None or isinstance(etf, BaseException) or not self._plausible(etf):
            return self._from_fallback(f"COMEX {metal} data unavailable")

        if fx is None:
            logger.warning("USD/CNY unavailable; using default %s", DEFAULT_USDCNY)
        result = build_spread(self.config, etf, sge, fx.price if fx else None)
        self._cache.set(metal, result)
        if result.shanghai is not None:
            self._fallback.set(metal, result)
        logger.info(
            "%s spread: COMEX %.2f, spread %s",
            metal,
            result.comex.price,
            result.spread.value if result.spread else "n/a",
        )
        return result
