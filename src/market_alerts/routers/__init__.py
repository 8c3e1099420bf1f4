"""HTTP routers."""
from market_alerts.routers.alerts import router as alerts_router
from market_alerts.routers.prices import router as prices_router
from market_alerts.routers.spreads import router as spreads_router

__all__ = ["alerts_router", "prices_router", "spreads_router"]
