"""Main module for the price alert service."""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from market_alerts.config import Settings, configure_logging
from market_alerts.db.sessions import create_db_engine, init_db
from market_alerts.routers import alerts_router, prices_router, spreads_router
from market_alerts.services import create_services


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create providers and services at startup; close upstream clients on shutdown."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)
    services = create_services(settings, engine)

    fastapi_app.state.alert_check_service = services.alert_check
    fastapi_app.state.aggregator = services.aggregator
    fastapi_app.state.spread_services = services.spreads

    yield

    await services.close()
    engine.dispose()


app = FastAPI(
    title="Market Alerts",
    description="Price alerts for metals, indices, and crypto",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(alerts_router)
app.include_router(prices_router)
app.include_router(spreads_router)


@app.get("/")
def health():
    """Return health check status."""
    return {"status": "ok"}


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    uvicorn.run("market_alerts.main:app", host="127.0.0.1", port=8001)
