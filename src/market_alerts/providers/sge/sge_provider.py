"""Shanghai Gold Exchange benchmark provider (HTML scrape of sge.com.cn)."""
import logging
import re
from datetime import date
from decimal import Decimal

import httpx
from bs4 import BeautifulSoup, NavigableString

from market_alerts.providers.sge.models import (GOLD_BENCHMARK,
                                                BenchmarkSession,
                                                ShanghaiBenchmark,
                                                ShanghaiBenchmarkQuote)
from market_alerts.utils import to_decimal

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")
_QUOTE_DATE = re.compile(r"行情日期[：:]\s*(\d{4}-\d{2}-\d{2})")
# Text nodes scanned after a label before giving up on finding its price.
_LOOKAHEAD = 12


def _price_after(label_node: NavigableString, label: str, prefix: str) -> Decimal | None:
    """First number after a label, in the label's own text or the following nodes.

    Stops at the next benchmark label so an unpublished fixing ("--") never
    borrows the price of the one after it.
    """
    tail = str(label_node).split(label, 1)[-1]
    if match := _NUMBER.search(tail):
        return to_decimal(match.group(0).replace(",", ""))
    for node in label_node.find_all_next(string=True, limit=_LOOKAHEAD):
        text = node.strip()
        if not text:
            continue
        if prefix in text:
            return None
        if match := _NUMBER.fullmatch(text):
            return to_decimal(match.group(0).replace(",", ""))
    return None


def _find_label(soup: BeautifulSoup, label: str) -> NavigableString | None:
    return soup.find(string=lambda text: text is not None and label in text)


def parse_benchmark_html(
    html: str,
    benchmark: ShanghaiBenchmark = GOLD_BENCHMARK,
    today: date | None = None,
) -> ShanghaiBenchmarkQuote | None:
    """Extract the latest benchmark fixing from an SGE benchmark page.

    The PM fixing is preferred; the AM fixing is used before the PM one is
    published. Returns None when no positive price can be found.
    """
    soup = BeautifulSoup(html, "html.parser")
    date_match = _QUOTE_DATE.search(soup.get_text(" "))
    quote_date = (
        date_match.group(1).replace("-", "")
        if date_match
        else (today or date.today()).strftime("%Y%m%d")
    )

    def quote(price: Decimal, session: BenchmarkSession) -> ShanghaiBenchmarkQuote:
        return ShanghaiBenchmarkQuote(
            metal=benchmark.metal,
            price_cny=price,
            unit_grams=benchmark.unit_grams,
            session=session,
            date=quote_date,
        )

    for label, session in (
        (benchmark.pm_label, BenchmarkSession.PM),
        (benchmark.am_label, BenchmarkSession.AM),
    ):
        node = _find_label(soup, label)
        if node is None:
            continue
        price = _price_after(node, label, benchmark.label_prefix)
        if price is not None:
            return quote(price, session)

    # Labels renamed: take the first two prices following any benchmark label (AM, PM).
    found = [
        _price_after(node, benchmark.label_prefix, benchmark.label_prefix)
        for node in soup.find_all(
            string=lambda text: text is not None and benchmark.label_prefix in text
        )
    ][:2]
    if len(found) == 2:
        if found[1] is not None:
            return quote(found[1], BenchmarkSession.PM)
        if found[0] is not None:
            return quote(found[0], BenchmarkSession.AM)
    return None


class ShanghaiBenchmarkProvider:
    """Fetches SGE benchmarks: Shanghai Gold (CNY/g) and Shanghai Silver (CNY/kg)."""

    name = "sge"
    BASE_URL = "https://www.sge.com.cn"
    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    }

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=self.BASE_URL, headers=self.HEADERS, timeout=timeout
        )

    async def fetch_benchmark(
        self, benchmark: ShanghaiBenchmark = GOLD_BENCHMARK
    ) -> ShanghaiBenchmarkQuote | None:
        """Fetch and parse a benchmark page; None on HTTP or parse failure."""
        try:
            response = await self._client.get(benchmark.page_path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("SGE %s page fetch failed: %r", benchmark.metal, e)
            return None
        quote = parse_benchmark_html(response.text, benchmark)
        if quote is None:
            logger.warning(
                "Could not parse Shanghai %s price from SGE page (%d chars)",
                benchmark.metal,
                len(response.text),
            )
        return quote

    async def close(self) -> None:
        await self._client.aclose()
