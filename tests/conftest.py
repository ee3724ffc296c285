"""
Test configuration and fixtures for the Energy Measurements API tests.
Contains shared fixtures and an in-memory stand-in for the database service.
"""

import statistics
from typing import List, Optional
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.database.query import MeasurementQuery
from src.main import create_app
from src.models.measurement import DateRange, Measurement, MetricField, MetricsSummary, SortOrder
from src.utils.date_utils import year_start


class FakeMeasurementStore:
    """
    Evaluates MeasurementQuery predicates over a list of measurements,
    mirroring the query methods of DatabaseService.
    """

    def __init__(self, measurements: List[Measurement]):
        self.measurements = measurements

    def _matching(self, query: MeasurementQuery) -> List[Measurement]:
        rows = []
        for m in self.measurements:
            if query.iso_code is not None and m.iso_code != query.iso_code:
                continue
            if query.start is not None and m.timestamp < query.start:
                continue
            if query.end is not None and m.timestamp > query.end:
                continue
            if query.numeric_field is not None and getattr(m, query.numeric_field.value) is None:
                continue
            rows.append(m)
        return rows

    async def find_measurements(self, query, field: MetricField, sort=SortOrder.ASC, offset=0, limit=500):
        rows = sorted(self._matching(query), key=lambda m: m.timestamp, reverse=sort == SortOrder.DESC)
        return [
            {"timestamp": m.timestamp, field.value: getattr(m, field.value)}
            for m in rows[offset:offset + limit]
        ]

    async def count_measurements(self, query) -> int:
        return len(self._matching(query))

    async def aggregate_metrics(self, query, field: MetricField) -> Optional[MetricsSummary]:
        values = [getattr(m, field.value) for m in self._matching(query)]
        if not values:
            return None
        return MetricsSummary(
            count=len(values),
            avg=statistics.fmean(values),
            min=min(values),
            max=max(values),
            std_dev=statistics.pstdev(values),
        )

    async def aggregate_date_range(self, query) -> Optional[DateRange]:
        timestamps = [m.timestamp for m in self._matching(query)]
        if not timestamps:
            return None
        return DateRange(min_date=min(timestamps), max_date=max(timestamps))


@pytest.fixture
def test_app():
    """
    Create a test instance of the FastAPI application.
    """
    app = create_app()
    return app


@pytest.fixture
def test_client(test_app):
    """
    Create a test client for the FastAPI application.
    """
    return TestClient(test_app)


@pytest.fixture
def sample_measurements() -> List[Measurement]:
    """
    Three USA years with field1 = 10, 20, 30 and five DEU years with field1 = 1..5.
    """
    records = []
    for offset, (field1, field2) in enumerate([(10.0, None), (20.0, 400.0), (30.0, 380.0)]):
        records.append(Measurement(
            timestamp=year_start(2000 + offset),
            field1=field1,
            field2=field2,
            field3=None,
            country="United States",
            iso_code="USA",
        ))

    for offset in range(5):
        records.append(Measurement(
            timestamp=year_start(2000 + offset),
            field1=float(offset + 1),
            field2=300.0 - offset,
            field3=40000.0,
            country="Germany",
            iso_code="DEU",
        ))

    return records


@pytest.fixture
def fake_store(sample_measurements):
    """
    Replace the database service used by the measurement service.
    """
    store = FakeMeasurementStore(sample_measurements)
    with patch("src.services.measurement_service.db_service", store):
        yield store


@pytest.fixture
def mock_db_service():
    """
    Create a mock database service for testing.
    """
    mock_db = AsyncMock()
    return mock_db
