"""SQL compiler for query requests.

turns a QueryRequest into a single aggregate query against the collection's
table. the shape is always the same:

  SELECT <group by>, <agg>(<metric>) AS "<function>"
  FROM <table>
  WHERE <time column> in [start, end) AND <filters>
  GROUP BY <group by>
  ORDER BY <group by>

sqlglot pretty-prints the result.
"""

from datetime import datetime, timezone

import sqlglot

from dimscope.models.metric import COUNT_METRIC, AggregationType, MetricFunction
from dimscope.models.query import QueryRequest
from dimscope.models.semantic_model import CollectionSchema


class RequestCompiler:
    """Compiles query requests into SQL.

    stateless apart from the dialect - the schema is passed per call since
    every request names its own collection.
    """

    AGG_MAP = {
        AggregationType.SUM: "SUM",
        AggregationType.COUNT: "COUNT",
        AggregationType.AVG: "AVG",
        AggregationType.MIN: "MIN",
        AggregationType.MAX: "MAX",
    }

    def __init__(self, dialect: str = "duckdb") -> None:
        self.dialect = dialect

    def compile(self, request: QueryRequest, schema: CollectionSchema) -> str:
        """Convert a request into SQL. Raises ValueError on unknown columns."""
        self._check_columns(request, schema)

        select_exprs = []
        if request.group_by:
            select_exprs.append(request.group_by)
        for function in request.metric_functions:
            select_exprs.append(f'{self._build_function_expr(function)} AS "{function}"')

        where_conditions = self._build_where_conditions(request, schema)

        parts = [f"SELECT {', '.join(select_exprs)}"]
        parts.append(f"FROM {schema.get_table_name()}")
        parts.append(f"WHERE {' AND '.join(where_conditions)}")
        if request.group_by:
            parts.append(f"GROUP BY {request.group_by}")
            parts.append(f"ORDER BY {request.group_by}")

        return self._format_sql("\n".join(parts))

    def _check_columns(self, request: QueryRequest, schema: CollectionSchema) -> None:
        dimensions = set(schema.dimensions)
        if request.group_by and request.group_by not in dimensions:
            raise ValueError(
                f"Unknown dimension '{request.group_by}' in collection '{schema.name}'"
            )
        for dimension, _ in request.filter_set:
            if dimension not in dimensions:
                raise ValueError(
                    f"Cannot filter on unknown dimension '{dimension}' in collection '{schema.name}'"
                )
        for function in request.metric_functions:
            if function.metric_name != COUNT_METRIC and function.metric_name not in schema.metrics:
                raise ValueError(
                    f"Unknown metric '{function.metric_name}' in collection '{schema.name}'"
                )

    def _build_function_expr(self, function: MetricFunction) -> str:
        # the row-count pseudo-metric counts rows whatever the aggregation says
        if function.metric_name == COUNT_METRIC:
            return "COUNT(*)"
        return f"{self.AGG_MAP[function.agg]}({function.metric_name})"

    def _build_where_conditions(self, request: QueryRequest, schema: CollectionSchema) -> list[str]:
        time_col = f"CAST({schema.time_column} AS TIMESTAMP)"
        conditions = [
            f"{time_col} >= TIMESTAMP '{_timestamp_literal(request.start)}'",
            f"{time_col} < TIMESTAMP '{_timestamp_literal(request.end)}'",
        ]

        # values of one dimension are OR-ed (IN), dimensions are AND-ed
        for dimension, values in request.filters().items():
            in_list = ", ".join(_quote(value) for value in values)
            conditions.append(f"CAST({dimension} AS VARCHAR) IN ({in_list})")

        return conditions

    def _format_sql(self, sql: str) -> str:
        parsed = sqlglot.parse_one(sql, dialect=self.dialect)
        return parsed.sql(dialect=self.dialect, pretty=True)


def _timestamp_literal(value: datetime) -> str:
    # aware datetimes are compared in utc, naive ones as-is
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%d %H:%M:%S.%f")


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"
