"""
Typed query intents for the measurements table.
A MeasurementQuery describes which rows a request targets; the database
service turns it into a parameterised SQL WHERE clause.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from src.models.measurement import FilterRequest, MetricField, MetricsFilterRequest


@dataclass(frozen=True)
class MeasurementQuery:
    """Predicate over the measurements table."""

    iso_code: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    numeric_field: Optional[MetricField] = None

    @classmethod
    def from_filter(cls, request: FilterRequest, numeric_only: bool = False) -> "MeasurementQuery":
        """
        Build the predicate for a validated filter request.

        Date bounds are taken from filters that carry them; numeric_only
        additionally restricts rows to those holding a value for the field.
        """
        start = end = None
        if isinstance(request, MetricsFilterRequest):
            start, end = request.start_date, request.end_date
        return cls(
            iso_code=request.iso_code,
            start=start,
            end=end,
            numeric_field=request.field if numeric_only else None,
        )

    def where_clause(self, first_param: int = 1) -> Tuple[str, List[Any]]:
        """
        Render the predicate as SQL.

        Returns:
            The WHERE clause (empty string when unfiltered) and its positional
            parameters, numbered from first_param.
        """
        conditions: List[str] = []
        params: List[Any] = []

        def add_condition(template: str, value: Any) -> None:
            params.append(value)
            conditions.append(template.format(f"${first_param + len(params) - 1}"))

        if self.iso_code is not None:
            add_condition("iso_code = {}", self.iso_code)
        if self.start is not None:
            add_condition("timestamp >= {}", self.start)
        if self.end is not None:
            add_condition("timestamp <= {}", self.end)
        if self.numeric_field is not None:
            # Column names come from the MetricField enum, never from user input
            conditions.append(f"{self.numeric_field.value} IS NOT NULL")

        if not conditions:
            return "", params
        return "WHERE " + " AND ".join(conditions), params
