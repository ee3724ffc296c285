"""
Database service using PostgreSQL with asyncpg.
Handles all database operations and schema setup in one place.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg

from src.config import settings
from src.database.query import MeasurementQuery
from src.exceptions import DatabaseError
from src.logging_config import get_logger
from src.models.measurement import DateRange, Measurement, MetricField, MetricsSummary, SortOrder

logger = get_logger(__name__)

CURRENT_SCHEMA_VERSION = 1


class DatabaseService:
    """Unified database service for all measurement data operations."""

    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.database_url
        self._pool = None

    async def _get_pool(self) -> asyncpg.Pool:
        """Get or create connection pool."""
        if self._pool is None or self._pool.is_closing():
            self._pool = await asyncpg.create_pool(
                self.database_url,
                min_size=2,
                max_size=10,
                command_timeout=60
            )
        return self._pool

    async def close(self):
        """Close database connection pool."""
        if self._pool and not self._pool.is_closing():
            await self._pool.close()

    async def init_database(self) -> None:
        """Initialize database with tables and indexes."""
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                current_version = await self._get_schema_version(conn)

                if current_version == 0:
                    await self._create_initial_schema(conn)
                    await self._set_schema_version(conn, CURRENT_SCHEMA_VERSION)
                    logger.info("Database initialized with schema version", version=CURRENT_SCHEMA_VERSION)

        except Exception as e:
            logger.error("Failed to initialize database", error=str(e))
            raise DatabaseError(f"Database initialization failed: {e}")

    async def _get_schema_version(self, conn: asyncpg.Connection) -> int:
        """Get current database schema version."""
        try:
            result = await conn.fetchval(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            return result if result else 0
        except asyncpg.UndefinedTableError:
            # Table doesn't exist, this is a new database
            return 0

    async def _set_schema_version(self, conn: asyncpg.Connection, version: int) -> None:
        """Set database schema version."""
        await conn.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES ($1, $2)",
            version, datetime.now()
        )

    async def _create_initial_schema(self, conn: asyncpg.Connection) -> None:
        """Create initial database schema."""
        await conn.execute("""
            CREATE TABLE schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await conn.execute("""
            CREATE TABLE measurements (
                id SERIAL PRIMARY KEY,
                timestamp TIMESTAMPTZ NOT NULL,
                field1 DOUBLE PRECISION,
                field2 DOUBLE PRECISION,
                field3 DOUBLE PRECISION,
                country TEXT,
                iso_code CHAR(3) CHECK (iso_code IS NULL OR char_length(iso_code) = 3),
                UNIQUE(iso_code, timestamp)
            )
        """)

        await conn.execute(
            "CREATE INDEX idx_measurements_timestamp ON measurements(timestamp)"
        )
        await conn.execute(
            "CREATE INDEX idx_measurements_iso_timestamp ON measurements(iso_code, timestamp)"
        )

        logger.info("Initial database schema created")

    async def save_measurements(self, measurements: List[Measurement]) -> int:
        """Upsert measurements keyed on (iso_code, timestamp). Returns the number written."""
        if not measurements:
            return 0

        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                records_data = [
                    (
                        m.timestamp,
                        m.field1,
                        m.field2,
                        m.field3,
                        m.country,
                        m.iso_code,
                    )
                    for m in measurements
                ]

                await conn.executemany("""
                    INSERT INTO measurements
                    (timestamp, field1, field2, field3, country, iso_code)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    ON CONFLICT (iso_code, timestamp) DO UPDATE SET
                        field1 = EXCLUDED.field1,
                        field2 = EXCLUDED.field2,
                        field3 = EXCLUDED.field3,
                        country = EXCLUDED.country
                """, records_data)

                logger.debug("Saved measurements", count=len(measurements))
                return len(measurements)

        except Exception as e:
            logger.error("Failed to save measurements", error=str(e))
            raise DatabaseError(f"Failed to save measurements: {e}")

    async def find_measurements(
        self,
        query: MeasurementQuery,
        field: MetricField,
        sort: SortOrder = SortOrder.ASC,
        offset: int = 0,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of timestamp/metric pairs ordered by timestamp."""
        try:
            where_clause, params = query.where_clause()
            direction = "DESC" if sort == SortOrder.DESC else "ASC"
            offset_param = len(params) + 1
            sql = (
                f"SELECT timestamp, {field.value} FROM measurements {where_clause} "
                f"ORDER BY timestamp {direction} "
                f"OFFSET ${offset_param} LIMIT ${offset_param + 1}"
            )

            pool = await self._get_pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *params, offset, limit)

            return [
                {"timestamp": row["timestamp"], field.value: row[field.value]}
                for row in rows
            ]

        except Exception as e:
            logger.error("Failed to fetch measurements", error=str(e), field=field.value)
            raise DatabaseError(f"Database query failed: {e}")

    async def count_measurements(self, query: MeasurementQuery) -> int:
        """Count rows matching the query, ignoring pagination."""
        try:
            where_clause, params = query.where_clause()
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                return await conn.fetchval(
                    f"SELECT COUNT(*) FROM measurements {where_clause}", *params
                )

        except Exception as e:
            logger.error("Failed to count measurements", error=str(e))
            raise DatabaseError(f"Database query failed: {e}")

    async def aggregate_metrics(self, query: MeasurementQuery, field: MetricField) -> Optional[MetricsSummary]:
        """
        Compute count, mean, extremes and population standard deviation of a metric.

        Returns None when no row holds a value for the metric.
        """
        try:
            where_clause, params = query.where_clause()
            column = field.value
            sql = f"""
                SELECT COUNT({column}) AS count,
                       AVG({column}) AS avg,
                       MIN({column}) AS min,
                       MAX({column}) AS max,
                       STDDEV_POP({column}) AS std_dev
                FROM measurements {where_clause}
            """

            pool = await self._get_pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(sql, *params)

            if not row or row["count"] == 0:
                return None

            return MetricsSummary(
                count=row["count"],
                avg=row["avg"],
                min=row["min"],
                max=row["max"],
                std_dev=row["std_dev"],
            )

        except Exception as e:
            logger.error("Failed to aggregate metrics", error=str(e), field=field.value)
            raise DatabaseError(f"Database query failed: {e}")

    async def aggregate_date_range(self, query: MeasurementQuery) -> Optional[DateRange]:
        """Earliest and latest timestamps matching the query, or None without matches."""
        try:
            where_clause, params = query.where_clause()
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT MIN(timestamp) AS min_date, MAX(timestamp) AS max_date "
                    f"FROM measurements {where_clause}",
                    *params
                )

            if not row or row["min_date"] is None or row["max_date"] is None:
                return None

            return DateRange(min_date=row["min_date"], max_date=row["max_date"])

        except Exception as e:
            logger.error("Failed to aggregate date range", error=str(e))
            raise DatabaseError(f"Database query failed: {e}")

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                result = await conn.fetchval(
                    "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = 'measurements'"
                )

                if result != 1:
                    logger.error("Measurements table not found")
                    return False

            return True

        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


# Global database service instance
db_service = DatabaseService()
