"""Current price snapshot routes."""
from fastapi import APIRouter, Query

from market_alerts.assets import ASSETS, get_asset
from market_alerts.deps import AggregatorDep
from market_alerts.errors import NoPriceDataError, UnknownAssetError
from market_alerts.schemas import PriceSnapshot
from market_alerts.services import ErrorMapper

router = APIRouter(prefix="/prices", tags=["prices"])
_errors = ErrorMapper(resource_name="Prices")


@router.get("", response_model=PriceSnapshot)
async def get_prices(
    aggregator: AggregatorDep,
    assets: str | None = Query(
        default=None, description="Comma-separated asset ids; defaults to every tracked asset"
    ),
) -> PriceSnapshot:
    """Get current prices for the requested assets."""
    if assets:
        requested = [a for a in (s.strip() for s in assets.split(",")) if a]
    else:
        requested = list(ASSETS)
    try:
        ids = [get_asset(a).id for a in requested]
    except UnknownAssetError as e:
        _errors.raise_http(e)

    snapshot = await aggregator.fetch_snapshot(ids)
    if not snapshot.is_available:
        _errors.raise_http(NoPriceDataError())
    return snapshot
