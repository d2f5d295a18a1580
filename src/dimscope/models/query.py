"""Pydantic models for query requests and responses.

a request says what to compute for one collection over one time window. it
is frozen (and hashable) because dispatchers hand back a request -> future
mapping, so requests are used as dict keys.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dimscope.models.metric import MetricFunction

# dimension name -> allowed values (duplicates allowed, order preserved)
FilterMap = dict[str, list[str]]

# dimension name -> values observed in the time window
DimensionValueCatalog = dict[str, list[str]]


class QueryRequest(BaseModel):
    """A request for the query service.

    `start` is inclusive, `end` exclusive. `filter_set` is a flattened filter
    map - (dimension, value) pairs - since dicts aren't hashable.
    """

    model_config = ConfigDict(frozen=True)

    collection: str
    reference: str
    metric_functions: tuple[MetricFunction, ...]
    start: datetime
    end: datetime
    group_by: str | None = None
    filter_set: tuple[tuple[str, str], ...] = ()

    @model_validator(mode="after")
    def check_window(self) -> "QueryRequest":
        if self.end < self.start:
            raise ValueError(f"Query window ends ({self.end}) before it starts ({self.start})")
        return self

    def filters(self) -> FilterMap:
        """The filter set regrouped by dimension."""
        grouped: FilterMap = {}
        for dimension, value in self.filter_set:
            grouped.setdefault(dimension, []).append(value)
        return grouped

    @staticmethod
    def flatten_filters(filters: FilterMap | None) -> tuple[tuple[str, str], ...]:
        if not filters:
            return ()
        return tuple((dimension, value) for dimension, values in filters.items() for value in values)


class QueryResult(BaseModel):
    """Raw result of running a query.

    returning the sql alongside the data is handy when a dimension comes
    back empty and you want to know why.
    """

    sql: str
    columns: list[str]
    data: list[dict] = Field(default_factory=list)
    row_count: int
    execution_time_ms: float


class QueryResponse(BaseModel):
    """Result table for a request, read per metric function."""

    request: QueryRequest
    result: QueryResult

    def num_rows(self, function: MetricFunction) -> int:
        if function not in self.request.metric_functions:
            return 0
        return self.result.row_count

    def row(self, function: MetricFunction, index: int) -> dict[str, str]:
        """Row `index` for `function`: the group-by column plus the function's column.

        values are stringified, nulls become "".
        """
        if function not in self.request.metric_functions:
            raise KeyError(f"Metric function {function} not in request")

        record = self.result.data[index]
        keys = [self.request.group_by] if self.request.group_by else []
        keys.append(str(function))
        return {key: _to_str(record.get(key)) for key in keys}


def _to_str(value) -> str:
    return "" if value is None else str(value)
