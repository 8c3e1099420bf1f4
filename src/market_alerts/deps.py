"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

Lifespan (main.py) builds the service graph once and attaches it to app.state;
these getters are used by Depends(). Tests set app.state directly.
"""
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from market_alerts.services import (AlertCheckService, PriceSourceAggregator,
                                    SpreadService)


def get_alert_check_service(request: Request) -> AlertCheckService:
    """Resolve the AlertCheckService from app.state (created at startup)."""
    return request.app.state.alert_check_service


def get_aggregator(request: Request) -> PriceSourceAggregator:
    """Resolve the shared PriceSourceAggregator from app.state."""
    return request.app.state.aggregator


def get_spread_service(request: Request, metal: str) -> SpreadService:
    """Resolve the SpreadService for a metal (e.g. 'gold') from the path."""
    services = request.app.state.spread_services
    key = metal.strip().lower()
    if key not in services:
        raise HTTPException(
            404,
            detail=f"No spread for '{metal}'. Available: {', '.join(services)}",
        )
    return services[key]


# Type aliases for route injection
AlertCheckServiceDep = Annotated[AlertCheckService, Depends(get_alert_check_service)]
AggregatorDep = Annotated[PriceSourceAggregator, Depends(get_aggregator)]
SpreadServiceDep = Annotated[SpreadService, Depends(get_spread_service)]
