"""
FastAPI route handlers for the measurement endpoints.
Query parameters arrive as raw strings and are validated before any
database access; validated filters are passed explicitly to the service.
"""

from datetime import datetime
from typing import Optional

import pytz
from fastapi import APIRouter, Query

from src.database.service import db_service
from src.exceptions import InternalServerError, NoDataError
from src.logging_config import get_logger
from src.models.measurement import DateRange, ErrorResponse, HealthResponse, MetricsSummary
from src.services.measurement_service import measurement_service
from src.services.query_validator import parse_list_query, parse_metrics_query, parse_range_query

logger = get_logger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid query parameter"},
    404: {"model": ErrorResponse, "description": "No data for the filter"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

FIELD_DESCRIPTION = "Metric to query: field1, field2 or field3 (required)"
ISO_CODE_DESCRIPTION = "3-letter ISO country code, case-insensitive"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.
    """
    db_healthy = await db_service.health_check()
    return HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        timestamp=datetime.now(pytz.UTC),
        details={"service": "energy-measurements-api", "database": db_healthy},
    )


@router.get("/measurements", responses=ERROR_RESPONSES)
async def get_measurements(
    field: Optional[str] = Query(default=None, description=FIELD_DESCRIPTION),
    iso_code: Optional[str] = Query(default=None, description=ISO_CODE_DESCRIPTION),
    start_date: Optional[str] = Query(default=None, description="First day included (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(default=None, description="Last day included (YYYY-MM-DD)"),
    page: Optional[str] = Query(default=None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(default=None, description="Items per page (default 500, max 2000)"),
    sort: Optional[str] = Query(default=None, description="Timestamp order: asc or desc"),
    format: Optional[str] = Query(default=None, description="'array' for a bare list, otherwise paginated object"),
):
    """
    List timestamp/value pairs for one metric.

    Returns either a bare array or a paginated object with page, limit,
    total, totalPages and data.

    Raises:
        QueryValidationError: 400 for invalid parameters.
        NoDataError: 404 if nothing matches the filter.
        InternalServerError: 500 for server errors.
    """
    request = parse_list_query(
        field=field,
        iso_code=iso_code,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort=sort,
        format=format,
    )

    try:
        return await measurement_service.list_measurements(request)

    except NoDataError:
        raise
    except Exception as e:
        logger.error("Unexpected error", error=str(e), **request.to_query_params())
        raise InternalServerError()


@router.get("/measurements/metrics", response_model=MetricsSummary, responses=ERROR_RESPONSES)
async def get_metrics(
    field: Optional[str] = Query(default=None, description=FIELD_DESCRIPTION),
    iso_code: Optional[str] = Query(default=None, description=ISO_CODE_DESCRIPTION),
    start_date: Optional[str] = Query(default=None, description="First day included (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(default=None, description="Last day included (YYYY-MM-DD)"),
):
    """
    Count, average, minimum, maximum and population standard deviation
    of the metric over the filtered measurements.
    """
    request = parse_metrics_query(field=field, iso_code=iso_code, start_date=start_date, end_date=end_date)

    try:
        return await measurement_service.get_metrics(request)

    except NoDataError:
        raise
    except Exception as e:
        logger.error("Unexpected error", error=str(e), **request.to_query_params())
        raise InternalServerError()


@router.get("/measurements/range", response_model=DateRange, responses=ERROR_RESPONSES)
async def get_range(
    field: Optional[str] = Query(default=None, description=FIELD_DESCRIPTION),
    iso_code: Optional[str] = Query(default=None, description=ISO_CODE_DESCRIPTION),
):
    """
    Earliest and latest measurement dates that hold a value for the metric.
    """
    request = parse_range_query(field=field, iso_code=iso_code)

    try:
        return await measurement_service.get_range(request)

    except NoDataError:
        raise
    except Exception as e:
        logger.error("Unexpected error", error=str(e), **request.to_query_params())
        raise InternalServerError()
