"""Exceptions surfaced by the alert pipeline.

Provider and channel failures are recovered locally and never raised past their
boundary; only the conditions below reach callers.
"""


class MarketAlertsError(Exception):
    """Base class for errors surfaced to the HTTP layer or job runner."""


class NoPriceDataError(MarketAlertsError):
    """No provider returned data and no cached snapshot exists."""

    def __init__(self, message: str = "No prices available") -> None:
        super().__init__(message)


class SpreadUnavailableError(MarketAlertsError):
    """Spread inputs for a metal are unavailable and nothing is cached."""


class UnknownAssetError(MarketAlertsError, ValueError):
    """Asset id is not in the registry."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Asset '{asset_id}' not found")
        self.asset_id = asset_id
