"""Price source aggregator: concurrent fan-out to providers into one snapshot.

One upstream outage never blocks unrelated assets: every provider call is
converted into a ProviderResult (prices or error) instead of raising, and
calls still pending at the cycle deadline are abandoned as no-data.
"""
import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from market_alerts.assets import find_asset, normalize_asset_id
from market_alerts.cache import TTLCache
from market_alerts.providers.core import PriceProviderABC, ProviderError
from market_alerts.schemas import PriceSnapshot, SnapshotStatus
from market_alerts.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one provider call: the prices it returned, or why it failed."""

    provider: str
    requested: tuple[str, ...]
    prices: dict[str, Decimal] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def snapshot_key(asset_ids: Iterable[str]) -> str:
    """Cache key for a set of assets (order-independent)."""
    return ",".join(sorted(set(asset_ids)))


class PriceSourceAggregator:
    """Builds a PriceSnapshot from several providers.

    Live and partial snapshots are cached under `cache` (live TTL) so repeated
    calls inside the window reuse them; fallback snapshots are never cached.
    Per-asset last-known prices are kept in `fallback_cache` and used only when
    every provider failed.
    """

    def __init__(
        self,
        providers: Sequence[PriceProviderABC],
        cache: TTLCache[PriceSnapshot],
        fallback_cache: TTLCache[Decimal] | None = None,
        *,
        per_call_timeout: float = 10.0,
        deadline: float = 25.0,
    ) -> None:
        self._providers = list(providers)
        self._cache = cache
        self._fallback = fallback_cache
        self._per_call_timeout = per_call_timeout
        self._deadline = deadline

    def _route(self, asset_ids: list[str]) -> list[tuple[PriceProviderABC, list[str]]]:
        """Group assets by the provider responsible for their category."""
        routed: dict[int, tuple[PriceProviderABC, list[str]]] = {}
        for asset_id in asset_ids:
            asset = find_asset(asset_id)
            if asset is None:
                logger.warning("Unknown asset %s; no provider to quote it", asset_id)
                continue
            provider = next((p for p in self._providers if p.supports(asset)), None)
            if provider is None:
                logger.warning("No provider configured for %s (%s)", asset_id, asset.category.value)
                continue
            routed.setdefault(id(provider), (provider, []))[1].append(asset.id)
        return list(routed.values())

    async def _call(self, provider: PriceProviderABC, asset_ids: list[str]) -> ProviderResult:
        requested = tuple(asset_ids)
        try:
            prices = await asyncio.wait_for(
                provider.fetch_batch(asset_ids), self._per_call_timeout
            )
        except asyncio.TimeoutError:
            return ProviderResult(
                provider.name, requested, error=f"timed out after {self._per_call_timeout:.1f}s"
            )
        except ProviderError as e:
            return ProviderResult(provider.name, requested, error=str(e))
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Provider %s raised unexpectedly", provider.name)
            return ProviderResult(provider.name, requested, error=repr(e))
        # Only keep what was asked for; providers may not widen the snapshot.
        kept = {a: p for a, p in prices.items() if a in requested}
        return ProviderResult(provider.name, requested, prices=kept)

    async def _gather_with_deadline(
        self, routed: list[tuple[PriceProviderABC, list[str]]]
    ) -> list[ProviderResult]:
        tasks = {
            asyncio.create_task(self._call(provider, ids)): (provider, ids)
            for provider, ids in routed
        }
        done, pending = await asyncio.wait(tasks, timeout=self._deadline)
        results = [task.result() for task in done]
        for task in pending:
            task.cancel()
            provider, ids = tasks[task]
            results.append(
                ProviderResult(provider.name, tuple(ids), error="cycle deadline exceeded")
            )
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        return results

    async def fetch_snapshot(self, asset_ids: Iterable[str]) -> PriceSnapshot:
        """Fetch current prices for the given assets.

        Returns a snapshot whose status tells the caller how much to trust it;
        never raises for upstream failures.
        """
        ids = sorted({normalize_asset_id(a) for a in asset_ids})
        if not ids:
            return PriceSnapshot()

        key = snapshot_key(ids)
        cached, found = self._cache.get(key)
        if found:
            logger.debug("Snapshot cache hit for %s", key)
            return cached

        routed = self._route(ids)
        if not routed:
            return PriceSnapshot()
        results = await self._gather_with_deadline(routed)

        prices: dict[str, Decimal] = {}
        failed: list[str] = []
        for result in results:
            if not result.ok:
                logger.warning("Price source %s failed: %s", result.provider, result.error)
                failed.append(result.provider)
            prices.update(result.prices)

        routed_ids = {a for _, sub in routed for a in sub}
        if not prices:
            return self._fallback_snapshot(ids, sorted(failed))

        if self._fallback is not None:
            for asset_id, price in prices.items():
                self._fallback.set(asset_id, price)

        missing = routed_ids - prices.keys()
        status = SnapshotStatus.PARTIAL if failed or missing else SnapshotStatus.LIVE
        snapshot = PriceSnapshot(
            prices=prices,
            status=status,
            fetched_at=utcnow(),
            failed_sources=sorted(failed),
        )
        logger.info(
            "Fetched %d/%d prices (%s)", len(prices), len(routed_ids), status.value
        )
        self._cache.set(key, snapshot)
        return snapshot

    def _fallback_snapshot(self, ids: list[str], failed: list[str]) -> PriceSnapshot:
        if self._fallback is None:
            logger.error("No prices from any source and no fallback cache")
            return PriceSnapshot.unavailable(failed)
        prices: dict[str, Decimal] = {}
        for asset_id in ids:
            price, found = self._fallback.get(asset_id)
            if found:
                prices[asset_id] = price
        if not prices:
            logger.error("No prices from any source and nothing cached for %s", ",".join(ids))
            return PriceSnapshot.unavailable(failed)
        logger.warning("All sources failed; using %d last-known prices", len(prices))
        return PriceSnapshot(prices=prices, status=SnapshotStatus.CACHED, failed_sources=failed)

    def invalidate(self, asset_ids: Iterable[str]) -> None:
        """Drop the cached snapshot for this asset set so the next call re-queries."""
        self._cache.invalidate(snapshot_key(normalize_asset_id(a) for a in asset_ids))
