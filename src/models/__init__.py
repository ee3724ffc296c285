"""
Data models package for the Energy Measurements API.
Contains Pydantic models for measurements, filters and API responses.
"""

from .measurement import (
    DateRange,
    ErrorResponse,
    FilterRequest,
    HealthResponse,
    ImportSummary,
    ListFilterRequest,
    Measurement,
    MeasurementPage,
    MetricField,
    MetricsFilterRequest,
    MetricsSummary,
    OutputFormat,
    SortOrder,
)

__all__ = [
    "DateRange",
    "ErrorResponse",
    "FilterRequest",
    "HealthResponse",
    "ImportSummary",
    "ListFilterRequest",
    "Measurement",
    "MeasurementPage",
    "MetricField",
    "MetricsFilterRequest",
    "MetricsSummary",
    "OutputFormat",
    "SortOrder",
]
