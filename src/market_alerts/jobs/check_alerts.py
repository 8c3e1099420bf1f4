"""Run one alert evaluation cycle and print the result as JSON.

Usage: `poetry run check-alerts` (exit code 1 when the cycle failed).
"""
import asyncio
import logging
import sys

from market_alerts.config import Settings, configure_logging
from market_alerts.db.sessions import create_db_engine, init_db
from market_alerts.errors import MarketAlertsError
from market_alerts.schemas import CycleResult, ErrorResponse
from market_alerts.services import create_services

logger = logging.getLogger(__name__)


async def run_once(settings: Settings) -> CycleResult:
    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)
    services = create_services(settings, engine)
    try:
        return await services.alert_check.run_cycle()
    finally:
        await services.close()
        engine.dispose()


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    try:
        result = asyncio.run(run_once(settings))
    except MarketAlertsError as e:
        logger.error("Alert check failed: %s", e)
        print(ErrorResponse(error=str(e)).model_dump_json())
        sys.exit(1)
    print(result.model_dump_json(by_alias=True))


if __name__ == "__main__":
    main()
