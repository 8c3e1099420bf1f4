"""Models for CoinGecko provider (API params and response rows)."""
from pydantic import BaseModel, ConfigDict


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price. Merge with 'ids' at call site."""

    vs_currencies: str = "usd"
    include_last_updated_at: str = "true"


class CoinGeckoPriceRow(BaseModel):
    """One coin row of a /simple/price response."""

    model_config = ConfigDict(extra="ignore")

    usd: float | None = None
    last_updated_at: int | None = None
