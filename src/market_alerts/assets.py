"""Registry of tracked assets and the upstream identifiers used to quote them."""
from dataclasses import dataclass

from market_alerts.db import AssetCategory
from market_alerts.errors import UnknownAssetError


@dataclass(frozen=True)
class Asset:
    """A tracked asset: our id, display fields, category, and upstream ticker."""

    id: str
    name: str
    symbol: str
    category: AssetCategory
    ticker: str  # Yahoo ticker for metals/indices, CoinGecko id for crypto
    price_unit: str = ""


ASSETS: dict[str, Asset] = {
    asset.id: asset
    for asset in (
        Asset("gold", "Gold", "XAU/USD", AssetCategory.METAL, "GC=F", "/oz"),
        Asset("silver", "Silver", "XAG/USD", AssetCategory.METAL, "SI=F", "/oz"),
        Asset("copper", "Copper", "HG/USD", AssetCategory.METAL, "HG=F", "/lb"),
        Asset("nasdaq100", "Nasdaq 100", "NDX", AssetCategory.INDEX, "^NDX"),
        Asset("sp500", "S&P 500", "SPX", AssetCategory.INDEX, "^GSPC"),
        Asset("bitcoin", "Bitcoin", "BTC/USD", AssetCategory.CRYPTO, "bitcoin"),
        Asset("ethereum", "Ethereum", "ETH/USD", AssetCategory.CRYPTO, "ethereum"),
    )
}


def normalize_asset_id(asset_id: str) -> str:
    """Normalize an asset id (trimmed, lowercase)."""
    return asset_id.strip().lower()


def get_asset(asset_id: str) -> Asset:
    """Look up an asset by id; raises UnknownAssetError if it is not tracked."""
    try:
        return ASSETS[normalize_asset_id(asset_id)]
    except KeyError:
        raise UnknownAssetError(asset_id) from None


def find_asset(asset_id: str) -> Asset | None:
    """Look up an asset by id; None if it is not tracked."""
    return ASSETS.get(normalize_asset_id(asset_id))
