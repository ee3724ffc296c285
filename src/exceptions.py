"""
Domain exceptions for the Energy Measurements API.
Each exception knows the HTTP status and error name it is reported with.
"""

from typing import Any, Dict, Optional


class MeasurementAPIException(Exception):
    """Base exception for all Energy Measurements API errors."""

    status_code = 500
    error_name = "InternalServerError"
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        """Render the error response body."""
        payload: Dict[str, Any] = {
            "error": self.error_name,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class InternalServerError(MeasurementAPIException):
    """Opaque server-side failure reported to clients without internals."""
    pass


class DatabaseError(MeasurementAPIException):
    """Raised when database operations fail."""
    pass


class DataFetchError(MeasurementAPIException):
    """Raised when downloading or parsing the import dataset fails."""
    pass


class NoDataError(MeasurementAPIException):
    """Raised when a valid filter matches no measurements."""

    status_code = 404
    error_name = "NoData"
    default_message = "No data found for the specified range."


class QueryValidationError(MeasurementAPIException):
    """Base class for rejected query parameters."""

    status_code = 400
    error_name = "BadRequest"
    default_message = "Invalid query parameters."


class InvalidFieldError(QueryValidationError):
    error_name = "InvalidField"
    default_message = "Invalid field parameter."


class InvalidDateError(QueryValidationError):
    error_name = "InvalidDate"
    default_message = "Invalid date. Expected YYYY-MM-DD."


class InvalidRangeError(QueryValidationError):
    error_name = "InvalidRange"
    default_message = "start_date must be before end_date."


class InvalidIsoCodeError(QueryValidationError):
    error_name = "InvalidIsoCode"
    default_message = "iso_code must be a 3-letter ISO code."


class InvalidPageError(QueryValidationError):
    error_name = "InvalidPage"
    default_message = "page must be a positive integer."


class InvalidLimitError(QueryValidationError):
    error_name = "InvalidLimit"
    default_message = "limit must be a positive integer."


class InvalidSortError(QueryValidationError):
    error_name = "InvalidSort"
    default_message = "sort must be asc or desc."
