"""
Database package for the Energy Measurements API.
Contains the database service and typed query intents.
"""

from .query import MeasurementQuery
from .service import db_service, DatabaseService

__all__ = [
    "db_service",
    "DatabaseService",
    "MeasurementQuery",
]
