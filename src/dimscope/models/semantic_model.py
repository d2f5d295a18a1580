"""Pydantic models for collections, dashboards and time granularity.

a collection is the unit everything else hangs off - one table, one time
column, a flat list of dimensions and metrics. dashboards are just named
lists of metric formulas scoped to a collection.
"""

from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dimscope.models.metric import MetricExpression


class TimeUnit(str, Enum):
    """Time units accepted in granularity tokens.

    the names are what people type ("5_MINUTES"), so the enum is looked up
    by name, not by value.
    """

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class TimeGranularity(BaseModel):
    """A bucket size: `size` units of `unit`."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(gt=0)
    unit: TimeUnit

    def to_timedelta(self) -> timedelta:
        # timedelta has no nanoseconds - round them down to microseconds
        if self.unit == TimeUnit.NANOSECONDS:
            return timedelta(microseconds=self.size // 1000)
        return timedelta(**{self.unit.value: self.size})

    def __str__(self) -> str:
        return f"{self.size}_{self.unit.name}"


class CollectionSchema(BaseModel):
    """Schema of a collection (dataset) in the backing store.

    `table` defaults to the collection name, which is the common case.
    """

    name: str
    description: str | None = None
    table: str | None = None
    time_column: str
    dimensions: list[str] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)

    @field_validator("dimensions")
    @classmethod
    def unique_dimensions(cls, value: list[str]) -> list[str]:
        seen = set()
        for name in value:
            if name in seen:
                raise ValueError(f"Duplicate dimension name '{name}'")
            seen.add(name)
        return value

    def dimension_names(self) -> list[str]:
        """Dimension names in declaration order (a fresh list each call)."""
        return list(self.dimensions)

    def get_table_name(self) -> str:
        return self.table or self.name


class DashboardConfig(BaseModel):
    """A stored dashboard definition."""

    dashboard_id: str
    dashboard_name: str
    collection: str
    metric_expressions: list[str] = Field(default_factory=list)
    description: str | None = None

    def expressions(self) -> list[MetricExpression]:
        return [MetricExpression(expression=expr) for expr in self.metric_expressions]
