"""
Measurement service - answers filtered queries and imports the OWID dataset.
Combines the list, metrics and date range queries with the CSV importer.
"""

import asyncio
import math
from datetime import MAXYEAR, MINYEAR
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pandas as pd

from src.config import settings
from src.database.query import MeasurementQuery
from src.database.service import db_service
from src.exceptions import DataFetchError, NoDataError
from src.logging_config import get_logger
from src.models.measurement import (
    DateRange,
    FilterRequest,
    ImportSummary,
    ListFilterRequest,
    Measurement,
    MeasurementPage,
    MetricsFilterRequest,
    MetricsSummary,
    OutputFormat,
)
from src.utils.date_utils import year_start

logger = get_logger(__name__)

# OWID column -> measurement attribute
OWID_COLUMNS = {
    "electricity_demand_per_capita": "field1",
    "carbon_intensity_elec": "field2",
    "energy_per_capita": "field3",
}


def _no_data(request: FilterRequest) -> NoDataError:
    return NoDataError(details={"field": request.field.value, "iso_code": request.iso_code})


def _to_number(value: Any) -> Optional[float]:
    """Convert a CSV cell to float, mapping blanks and non-numeric values to None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_text(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


def _to_year(value: Any) -> Optional[int]:
    number = _to_number(value)
    if number is None or not number.is_integer() or not MINYEAR <= number <= MAXYEAR:
        return None
    return int(number)


class MeasurementService:
    """Unified service for measurement queries and dataset import."""

    def __init__(self):
        self.csv_url = settings.owid_csv_url
        self.batch_size = settings.import_batch_size
        self.timeout = 120

    async def list_measurements(
        self, request: ListFilterRequest
    ) -> Union[List[Dict[str, Any]], MeasurementPage]:
        """
        Fetch one page of measurements for the requested metric.

        The array format returns the bare page; the object format wraps it
        with pagination totals. Both raise NoDataError when nothing matches.
        """
        query = MeasurementQuery.from_filter(request)
        fetch_page = db_service.find_measurements(
            query,
            request.field,
            sort=request.sort,
            offset=request.offset,
            limit=request.limit,
        )

        if request.format == OutputFormat.ARRAY:
            data = await fetch_page
            if not data:
                raise _no_data(request)
            return data

        data, total = await asyncio.gather(fetch_page, db_service.count_measurements(query))
        if total == 0:
            raise _no_data(request)

        logger.debug("Listed measurements", field=request.field.value, iso_code=request.iso_code,
                     page=request.page, total=total)
        return MeasurementPage(
            page=request.page,
            limit=request.limit,
            total=total,
            total_pages=math.ceil(total / request.limit),
            data=data,
        )

    async def get_metrics(self, request: MetricsFilterRequest) -> MetricsSummary:
        """Aggregate statistics (population standard deviation) over numeric values."""
        query = MeasurementQuery.from_filter(request, numeric_only=True)
        summary = await db_service.aggregate_metrics(query, request.field)
        if summary is None or summary.count == 0:
            raise _no_data(request)
        return summary

    async def get_range(self, request: FilterRequest) -> DateRange:
        """Earliest and latest timestamps holding a value for the metric."""
        query = MeasurementQuery.from_filter(request, numeric_only=True)
        date_range = await db_service.aggregate_date_range(query)
        if date_range is None:
            raise _no_data(request)
        return date_range

    async def import_owid_csv(self, csv_path: Optional[str] = None) -> ImportSummary:
        """
        Load the OWID energy CSV into the measurements table.

        Without a path the default location is used and downloaded first when
        missing. An explicit path must already exist.
        """
        if csv_path is None:
            path = Path(settings.owid_csv_path)
            if not path.exists():
                await self._download_csv(self.csv_url, path)
        else:
            path = Path(csv_path)
            if not path.exists():
                raise DataFetchError(f"CSV file not found: {path}")

        frame = self._read_csv(path)
        measurements, summary = self._parse_owid_frame(frame)

        for start in range(0, len(measurements), self.batch_size):
            batch = measurements[start:start + self.batch_size]
            summary.inserted += await db_service.save_measurements(batch)
            logger.info("Import progress", read=summary.read, inserted=summary.inserted,
                        skipped=summary.skipped)

        logger.info("Import finished", read=summary.read, inserted=summary.inserted,
                    skipped=summary.skipped)
        return summary

    async def _download_csv(self, url: str, destination: Path) -> None:
        """Stream the CSV to disk, following redirects."""
        logger.info("CSV not found, downloading", url=url, destination=str(destination))
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(destination, "wb") as handle:
                        async for chunk in response.aiter_bytes():
                            handle.write(chunk)
        except httpx.HTTPError as e:
            destination.unlink(missing_ok=True)
            raise DataFetchError(f"HTTP error: {e}")

    def _read_csv(self, path: Path) -> pd.DataFrame:
        try:
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        except Exception as e:
            raise DataFetchError(f"CSV parsing failed: {e}")

    def _parse_owid_frame(self, frame: pd.DataFrame) -> Tuple[List[Measurement], ImportSummary]:
        """Convert OWID rows into measurements, counting skipped rows."""
        expected_columns = ["country", "year", "iso_code", *OWID_COLUMNS]
        if not all(col in frame.columns for col in expected_columns):
            missing = set(expected_columns) - set(frame.columns)
            raise DataFetchError(f"Missing CSV columns: {missing}")

        summary = ImportSummary()
        measurements = []

        for row in frame.to_dict("records"):
            summary.read += 1

            iso_code = _to_text(row["iso_code"])
            year = _to_year(row["year"])
            if iso_code is None or len(iso_code) != 3 or year is None:
                summary.skipped += 1
                continue

            metrics = {attr: _to_number(row[col]) for col, attr in OWID_COLUMNS.items()}
            if all(value is None for value in metrics.values()):
                summary.skipped += 1
                continue

            measurements.append(Measurement(
                timestamp=year_start(year),
                country=_to_text(row["country"]),
                iso_code=iso_code,
                **metrics,
            ))

        return measurements, summary


# Global measurement service instance
measurement_service = MeasurementService()
