"""
Query validation and normalization for the measurement endpoints.
Turns untrusted query string values into frozen filter requests or raises a
typed QueryValidationError describing the offending parameter.
"""

from datetime import datetime
from typing import Optional, Tuple

from src.exceptions import (
    InvalidDateError,
    InvalidFieldError,
    InvalidIsoCodeError,
    InvalidLimitError,
    InvalidPageError,
    InvalidRangeError,
    InvalidSortError,
)
from src.models.measurement import (
    FilterRequest,
    ListFilterRequest,
    MetricField,
    MetricsFilterRequest,
    OutputFormat,
    SortOrder,
)
from src.utils.date_utils import parse_query_date

DEFAULT_PAGE = 1
MAX_PAGE = 1_000_000_000
DEFAULT_LIMIT = 500
MAX_LIMIT = 2000

# Longer digit strings are larger than any accepted page or limit
MAX_INT_DIGITS = 18

ALLOWED_FIELDS = [field.value for field in MetricField]


def _parse_field(field: Optional[str]) -> MetricField:
    if field not in ALLOWED_FIELDS:
        raise InvalidFieldError(details={"field": field, "allowed": ALLOWED_FIELDS})
    return MetricField(field)


def _parse_date_param(name: str, value: Optional[str], end_of_day: bool) -> Optional[datetime]:
    if not value:
        return None
    parsed = parse_query_date(value, end_of_day=end_of_day)
    if parsed is None:
        raise InvalidDateError(f"Invalid {name}. Expected YYYY-MM-DD.", details={name: value})
    return parsed


def _parse_date_bounds(
    start_date: Optional[str], end_date: Optional[str]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    start = _parse_date_param("start_date", start_date, end_of_day=False)
    end = _parse_date_param("end_date", end_date, end_of_day=True)
    if start and end and start > end:
        raise InvalidRangeError(details={"start_date": start_date, "end_date": end_date})
    return start, end


def _normalize_iso_code(iso_code: Optional[str]) -> Optional[str]:
    if not iso_code:
        return None
    normalized = iso_code.strip().upper()
    if len(normalized) != 3:
        raise InvalidIsoCodeError(details={"iso_code": iso_code})
    return normalized


def _parse_positive_int(value: Optional[str], default: int) -> Optional[int]:
    """Return the default for a missing value, None for anything not a positive integer."""
    if value is None or value == "":
        return default
    text = value.strip()
    if not text.isascii() or not text.isdigit():
        return None
    digits = text.lstrip("0")
    if not digits:
        return None
    if len(digits) > MAX_INT_DIGITS:
        return 10 ** MAX_INT_DIGITS
    return int(digits)


def _parse_page(page: Optional[str]) -> int:
    parsed = _parse_positive_int(page, DEFAULT_PAGE)
    if parsed is None or parsed > MAX_PAGE:
        raise InvalidPageError(details={"page": page})
    return parsed


def _parse_limit(limit: Optional[str]) -> int:
    parsed = _parse_positive_int(limit, DEFAULT_LIMIT)
    if parsed is None:
        raise InvalidLimitError(details={"limit": limit})
    return min(parsed, MAX_LIMIT)


def _parse_sort(sort: Optional[str]) -> SortOrder:
    if not sort:
        return SortOrder.ASC
    normalized = sort.lower()
    if normalized not in (SortOrder.ASC.value, SortOrder.DESC.value):
        raise InvalidSortError(details={"sort": sort})
    return SortOrder(normalized)


def _parse_format(format: Optional[str]) -> OutputFormat:
    return OutputFormat.ARRAY if format == OutputFormat.ARRAY.value else OutputFormat.OBJECT


def parse_list_query(
    field: Optional[str],
    iso_code: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort: Optional[str] = None,
    format: Optional[str] = None,
) -> ListFilterRequest:
    """
    Validate the parameters of the measurement list endpoint.

    Parameters are checked in order (field, dates, date order, iso_code, page,
    limit, sort) and the first failure is raised. A limit above the maximum is
    clamped rather than rejected, and an unrecognised format falls back to
    the paginated object format.

    Raises:
        QueryValidationError: A subclass naming the rejected parameter.
    """
    metric = _parse_field(field)
    start, end = _parse_date_bounds(start_date, end_date)
    iso = _normalize_iso_code(iso_code)

    return ListFilterRequest(
        field=metric,
        iso_code=iso,
        start_date=start,
        end_date=end,
        page=_parse_page(page),
        limit=_parse_limit(limit),
        sort=_parse_sort(sort),
        format=_parse_format(format),
    )


def parse_metrics_query(
    field: Optional[str],
    iso_code: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> MetricsFilterRequest:
    """Validate the parameters of the metrics endpoint."""
    metric = _parse_field(field)
    start, end = _parse_date_bounds(start_date, end_date)
    iso = _normalize_iso_code(iso_code)

    return MetricsFilterRequest(field=metric, iso_code=iso, start_date=start, end_date=end)


def parse_range_query(field: Optional[str], iso_code: Optional[str] = None) -> FilterRequest:
    """Validate the parameters of the date range endpoint."""
    metric = _parse_field(field)
    return FilterRequest(field=metric, iso_code=_normalize_iso_code(iso_code))
