"""
Pydantic data models for measurements, query filters and API responses.
Defines the stored record shape, the validated filter requests passed from
the query validator to the measurement service, and the response formats.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DATE_FORMAT = "%Y-%m-%d"


class MetricField(str, Enum):
    """
    Selectable numeric metrics stored on every measurement.
    """
    FIELD1 = "field1"    # Electricity demand per capita (kWh)
    FIELD2 = "field2"    # Carbon intensity of electricity (gCO2/kWh)
    FIELD3 = "field3"    # Primary energy consumption per capita (kWh)


FIELD_LABELS = {
    MetricField.FIELD1: "Electricity demand per capita",
    MetricField.FIELD2: "Carbon intensity of electricity",
    MetricField.FIELD3: "Energy per capita",
}


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OutputFormat(str, Enum):
    ARRAY = "array"
    OBJECT = "object"


class Measurement(BaseModel):
    """
    A single yearly measurement for one country.

    The timestamp is stored as January 1st (UTC) of the measurement year.
    Missing metrics are kept as null rather than omitted.
    """
    timestamp: datetime = Field(description="Jan 1st UTC of the measurement year")
    field1: Optional[float] = Field(default=None, description="Electricity demand per capita")
    field2: Optional[float] = Field(default=None, description="Carbon intensity of electricity")
    field3: Optional[float] = Field(default=None, description="Energy per capita")
    country: Optional[str] = Field(default=None, description="Country display name")
    iso_code: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="3-letter ISO country code"
    )


class FilterRequest(BaseModel):
    """
    Validated constraints shared by every measurement query.
    """
    model_config = ConfigDict(frozen=True)

    field: MetricField
    iso_code: Optional[str] = Field(default=None, min_length=3, max_length=3)

    def to_query_params(self) -> Dict[str, str]:
        """Encode the filter back into canonical query parameters."""
        params = {"field": self.field.value}
        if self.iso_code is not None:
            params["iso_code"] = self.iso_code
        return params


class MetricsFilterRequest(FilterRequest):
    """
    Filter with optional inclusive timestamp bounds.
    """
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_date_order(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be before end_date")
        return self

    def to_query_params(self) -> Dict[str, str]:
        params = super().to_query_params()
        if self.start_date is not None:
            params["start_date"] = self.start_date.strftime(DATE_FORMAT)
        if self.end_date is not None:
            params["end_date"] = self.end_date.strftime(DATE_FORMAT)
        return params


class ListFilterRequest(MetricsFilterRequest):
    """
    Filter for the paginated measurement list.
    """
    page: int = Field(default=1, ge=1, le=1_000_000_000)
    limit: int = Field(default=500, ge=1, le=2000)
    sort: SortOrder = SortOrder.ASC
    format: OutputFormat = OutputFormat.OBJECT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_query_params(self) -> Dict[str, str]:
        params = super().to_query_params()
        params.update({
            "page": str(self.page),
            "limit": str(self.limit),
            "sort": self.sort.value,
            "format": self.format.value,
        })
        return params


class MeasurementPage(BaseModel):
    """
    Paginated list response (object format).
    """
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(description="Current page, starting at 1")
    limit: int = Field(description="Maximum items per page")
    total: int = Field(description="Matching measurements ignoring pagination")
    total_pages: int = Field(alias="totalPages", description="ceil(total / limit)")
    data: List[Dict[str, Any]] = Field(description="Timestamp and requested metric per item")


class MetricsSummary(BaseModel):
    """
    Aggregate statistics over the numeric values of one metric.
    """
    model_config = ConfigDict(populate_by_name=True)

    count: int
    avg: float
    min: float
    max: float
    std_dev: float = Field(alias="stdDev", description="Population standard deviation")


class DateRange(BaseModel):
    """
    Earliest and latest timestamps holding a value for a metric.
    """
    model_config = ConfigDict(populate_by_name=True)

    min_date: datetime = Field(alias="minDate")
    max_date: datetime = Field(alias="maxDate")


class ImportSummary(BaseModel):
    """
    Row counters reported by a dataset import.
    """
    read: int = 0
    inserted: int = 0
    skipped: int = 0


class ErrorResponse(BaseModel):
    """
    Body of every failed request.
    """
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """
    Health check response model.
    """
    status: str = Field(description="Health status")
    timestamp: datetime = Field(description="Health check timestamp")
    details: Optional[dict] = Field(default=None, description="Additional health details")
