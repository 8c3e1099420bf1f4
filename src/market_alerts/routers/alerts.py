"""Alert evaluation routes."""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from market_alerts.deps import AlertCheckServiceDep
from market_alerts.errors import MarketAlertsError
from market_alerts.schemas import CycleResult, ErrorResponse
from market_alerts.services import ErrorMapper

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/alerts", tags=["alerts"])
_errors = ErrorMapper(resource_name="Prices")


@router.post(
    "/check",
    response_model=CycleResult,
    response_model_by_alias=True,
    responses={503: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def check_alerts(service: AlertCheckServiceDep):
    """Run one evaluation cycle over every active alert.

    Triggered alerts are marked once and their owners notified according to
    their preferences. Answers 503 when no prices could be obtained at all.
    """
    try:
        return await service.run_cycle()
    except MarketAlertsError as e:
        logger.error("Alert check failed: %s", e)
        return _errors.to_response(e)
    except Exception as e:  # pylint: disable=broad-except
        logger.exception("Alert check failed unexpectedly")
        return JSONResponse(
            status_code=500, content=ErrorResponse(error=str(e) or "Internal server error").model_dump()
        )
