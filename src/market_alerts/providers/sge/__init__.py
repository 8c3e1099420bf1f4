"""Shanghai Gold Exchange benchmark provider (gold and silver)."""
from market_alerts.providers.sge.models import (GOLD_BENCHMARK,
                                                SILVER_BENCHMARK,
                                                ShanghaiBenchmark)
from market_alerts.providers.sge.sge_provider import (
    ShanghaiBenchmarkProvider, parse_benchmark_html)

__all__ = [
    "GOLD_BENCHMARK",
    "SILVER_BENCHMARK",
    "ShanghaiBenchmark",
    "ShanghaiBenchmarkProvider",
    "parse_benchmark_html",
]
