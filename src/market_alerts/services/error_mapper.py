"""Mapping of pipeline exceptions to HTTP responses."""
from dataclasses import dataclass

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from market_alerts.errors import (NoPriceDataError, SpreadUnavailableError,
                                  UnknownAssetError)
from market_alerts.schemas import ErrorResponse


@dataclass(frozen=True)
class ErrorMapper:
    """Maps service exceptions to HTTP (status_code, detail).

    One instance per router, labelled with the resource it serves.
    """

    resource_name: str = "Resource"

    def to_http(self, exc: Exception) -> tuple[int, str]:
        """Map an exception to (status_code, detail)."""
        if isinstance(exc, UnknownAssetError):
            return (404, str(exc))
        if isinstance(exc, (NoPriceDataError, SpreadUnavailableError)):
            return (503, str(exc) or f"{self.resource_name} unavailable")
        return (500, "Internal server error")

    def raise_http(self, exc: Exception) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc)
        raise HTTPException(status_code=status_code, detail=detail) from exc

    def to_response(self, exc: Exception) -> JSONResponse:
        """Map exception to a {success: false, error} JSON body."""
        status_code, detail = self.to_http(exc)
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=detail).model_dump(),
        )
