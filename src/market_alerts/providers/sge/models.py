"""Models for the Shanghai Gold Exchange benchmark scraper."""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class BenchmarkSession(str, Enum):
    AM = "AM"
    PM = "PM"


@dataclass(frozen=True)
class ShanghaiBenchmark:
    """One SGE benchmark: where it is published and in which unit.

    The page labels each fixing as "<label_prefix>早盘价" (AM) and
    "<label_prefix>午盘价" (PM).
    """

    metal: str
    label_prefix: str
    page_path: str
    unit_grams: int  # grams per quoted unit: 1 for CNY/g, 1000 for CNY/kg

    @property
    def am_label(self) -> str:
        return f"{self.label_prefix}早盘价"

    @property
    def pm_label(self) -> str:
        return f"{self.label_prefix}午盘价"


GOLD_BENCHMARK = ShanghaiBenchmark("gold", "上海金", "/web/guest/gold", 1)
SILVER_BENCHMARK = ShanghaiBenchmark("silver", "上海银", "/web/guest/silver", 1000)


class ShanghaiBenchmarkQuote(BaseModel):
    """SGE benchmark price in CNY per quoted unit for one fixing session."""

    metal: str
    price_cny: Decimal
    unit_grams: int
    session: BenchmarkSession
    date: str  # YYYYMMDD
