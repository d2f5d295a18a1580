"""Pydantic models for dimscope."""

from dimscope.models.metric import (
    COUNT_METRIC,
    AggregationType,
    MetricExpression,
    MetricFunction,
)
from dimscope.models.query import (
    DimensionValueCatalog,
    FilterMap,
    QueryRequest,
    QueryResponse,
    QueryResult,
)
from dimscope.models.semantic_model import (
    CollectionSchema,
    DashboardConfig,
    TimeGranularity,
    TimeUnit,
)

__all__ = [
    "COUNT_METRIC",
    "AggregationType",
    "CollectionSchema",
    "DashboardConfig",
    "DimensionValueCatalog",
    "FilterMap",
    "MetricExpression",
    "MetricFunction",
    "QueryRequest",
    "QueryResponse",
    "QueryResult",
    "TimeGranularity",
    "TimeUnit",
]
