"""Exchange spread routes."""
from fastapi import APIRouter

from market_alerts.deps import SpreadServiceDep
from market_alerts.errors import SpreadUnavailableError
from market_alerts.schemas import MetalSpread
from market_alerts.services import ErrorMapper

router = APIRouter(prefix="/spreads", tags=["spreads"])
_errors = ErrorMapper(resource_name="Spread")


@router.get("/{metal}", response_model=MetalSpread)
async def get_spread(metal: str, service: SpreadServiceDep) -> MetalSpread:
    """Shanghai benchmark vs COMEX for gold or silver, in USD per troy ounce.

    Args:
        metal: "gold" or "silver".
    """
    try:
        return await service.get_spread()
    except SpreadUnavailableError as e:
        _errors.raise_http(e)
