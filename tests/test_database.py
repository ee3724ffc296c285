"""
Unit tests for query intents and the SQL issued by the database service.
The asyncpg pool is replaced with mocks; no database is required.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

from src.database.query import MeasurementQuery
from src.database.service import DatabaseService
from src.exceptions import DatabaseError
from src.models.measurement import MetricField, SortOrder
from src.services.query_validator import parse_list_query, parse_range_query

START = datetime(2000, 1, 1, tzinfo=pytz.UTC)
END = datetime(2010, 12, 31, 23, 59, 59, 999000, tzinfo=pytz.UTC)


@pytest.fixture
def connection():
    return AsyncMock()


@pytest.fixture
def database(connection):
    """DatabaseService whose pool hands out the mocked connection."""
    service = DatabaseService(database_url="postgresql://test/test")
    pool = MagicMock()
    pool.is_closing.return_value = False
    pool.acquire.return_value.__aenter__.return_value = connection
    service._pool = pool
    return service


class TestMeasurementQuery:
    """Tests for predicate rendering."""

    def test_unfiltered(self):
        assert MeasurementQuery().where_clause() == ("", [])

    def test_all_conditions(self):
        query = MeasurementQuery(iso_code="USA", start=START, end=END, numeric_field=MetricField.FIELD2)
        clause, params = query.where_clause()
        assert clause == (
            "WHERE iso_code = $1 AND timestamp >= $2 AND timestamp <= $3 AND field2 IS NOT NULL"
        )
        assert params == ["USA", START, END]

    def test_parameter_numbering_offset(self):
        clause, params = MeasurementQuery(end=END).where_clause(first_param=4)
        assert clause == "WHERE timestamp <= $4"
        assert params == [END]

    def test_from_list_filter(self):
        request = parse_list_query("field1", iso_code="deu", start_date="2000-01-01", end_date="2010-12-31")
        query = MeasurementQuery.from_filter(request)
        assert query == MeasurementQuery(iso_code="DEU", start=START, end=END)

    def test_from_range_filter_has_no_dates(self):
        query = MeasurementQuery.from_filter(parse_range_query("field3", "usa"), numeric_only=True)
        assert query == MeasurementQuery(iso_code="USA", numeric_field=MetricField.FIELD3)


class TestDatabaseQueries:
    """Tests for SQL built by DatabaseService."""

    @pytest.mark.asyncio
    async def test_find_measurements(self, database, connection):
        connection.fetch.return_value = [
            {"timestamp": START, "field1": 12.5},
        ]

        rows = await database.find_measurements(
            MeasurementQuery(iso_code="USA"), MetricField.FIELD1, sort=SortOrder.DESC, offset=4, limit=2
        )

        sql, *params = connection.fetch.call_args.args
        assert "SELECT timestamp, field1 FROM measurements WHERE iso_code = $1" in sql
        assert "ORDER BY timestamp DESC" in sql
        assert "OFFSET $2 LIMIT $3" in sql
        assert params == ["USA", 4, 2]
        assert rows == [{"timestamp": START, "field1": 12.5}]

    @pytest.mark.asyncio
    async def test_count_measurements(self, database, connection):
        connection.fetchval.return_value = 42

        total = await database.count_measurements(MeasurementQuery(start=START))

        sql, *params = connection.fetchval.call_args.args
        assert sql.strip() == "SELECT COUNT(*) FROM measurements WHERE timestamp >= $1"
        assert params == [START]
        assert total == 42

    @pytest.mark.asyncio
    async def test_aggregate_metrics_uses_population_stddev(self, database, connection):
        connection.fetchrow.return_value = {
            "count": 3, "avg": 20.0, "min": 10.0, "max": 30.0, "std_dev": 8.16496580927726,
        }
        query = MeasurementQuery(iso_code="USA", numeric_field=MetricField.FIELD1)

        summary = await database.aggregate_metrics(query, MetricField.FIELD1)

        sql, *params = connection.fetchrow.call_args.args
        assert "STDDEV_POP(field1)" in sql
        assert "STDDEV_SAMP" not in sql
        assert "field1 IS NOT NULL" in sql
        assert params == ["USA"]
        assert summary.count == 3
        assert summary.std_dev == pytest.approx(8.165, abs=1e-3)
        assert summary.model_dump(by_alias=True)["stdDev"] == summary.std_dev

    @pytest.mark.asyncio
    async def test_aggregate_metrics_empty(self, database, connection):
        connection.fetchrow.return_value = {"count": 0, "avg": None, "min": None, "max": None, "std_dev": None}

        assert await database.aggregate_metrics(MeasurementQuery(), MetricField.FIELD2) is None

    @pytest.mark.asyncio
    async def test_aggregate_date_range(self, database, connection):
        connection.fetchrow.return_value = {"min_date": START, "max_date": END}

        date_range = await database.aggregate_date_range(MeasurementQuery(numeric_field=MetricField.FIELD3))

        sql = connection.fetchrow.call_args.args[0]
        assert "MIN(timestamp)" in sql and "MAX(timestamp)" in sql
        assert "field3 IS NOT NULL" in sql
        assert date_range.model_dump(by_alias=True) == {"minDate": START, "maxDate": END}

    @pytest.mark.asyncio
    async def test_aggregate_date_range_empty(self, database, connection):
        connection.fetchrow.return_value = {"min_date": None, "max_date": None}

        assert await database.aggregate_date_range(MeasurementQuery()) is None

    @pytest.mark.asyncio
    async def test_driver_failure_wrapped(self, database, connection):
        connection.fetchval.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseError, match="Database query failed"):
            await database.count_measurements(MeasurementQuery())

    @pytest.mark.asyncio
    async def test_save_measurements_empty_batch(self, database, connection):
        assert await database.save_measurements([]) == 0
        connection.executemany.assert_not_called()
