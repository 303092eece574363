"""Domain exceptions raised by services and translated by routers."""

from fastapi import HTTPException, status


class WinetrailError(Exception):
    """Base class for domain errors.

    Subclasses set ``status_code``; routers convert them with
    :meth:`to_http`.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ListingValidationError(WinetrailError):
    """A winery listing failed validation."""

    def __init__(self, errors: list[str], status_code: int | None = None):
        super().__init__("; ".join(errors), status_code)
        self.errors = errors

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.errors)


class ItineraryError(WinetrailError):
    """An itinerary operation was rejected."""


class AgeVerificationError(WinetrailError):
    status_code = status.HTTP_403_FORBIDDEN


class PaymentError(WinetrailError):
    status_code = status.HTTP_502_BAD_GATEWAY


class GeocodingError(WinetrailError):
    status_code = status.HTTP_502_BAD_GATEWAY
