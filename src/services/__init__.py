"""
Services package for the Energy Measurements API.
Contains the query validator and the measurement service.
"""

from .measurement_service import measurement_service, MeasurementService
from .query_validator import parse_list_query, parse_metrics_query, parse_range_query

__all__ = [
    "measurement_service",
    "MeasurementService",
    "parse_list_query",
    "parse_metrics_query",
    "parse_range_query",
]
