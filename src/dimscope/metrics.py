"""Resolution of what a dashboard view should compute.

three representations float around:
  - metric expressions: formulas as stored on a dashboard ("clicks / views")
  - a metrics payload: JSON list of metric names from the ui
  - metric functions: the SUM(x) aggregations the query service runs

the conversions between them aren't symmetric - going from functions to
expressions drops the aggregation kind.
"""

from collections.abc import Sequence

from loguru import logger

from dimscope.codec import DEFAULT_CODEC, DecodeError, JsonCodec
from dimscope.dashboards import DEFAULT_DASHBOARD_ID
from dimscope.interfaces import DashboardConfigStore
from dimscope.models.metric import (
    COUNT_METRIC,
    AggregationType,
    MetricExpression,
    MetricFunction,
)

ROW_COUNT_FUNCTION = MetricFunction(agg=AggregationType.SUM, metric_name=COUNT_METRIC)


class MetricExpressionResolver:
    """Resolves metric payloads and dashboard configs into expressions/functions."""

    def __init__(self, config_store: DashboardConfigStore, codec: JsonCodec = DEFAULT_CODEC) -> None:
        self.config_store = config_store
        self.codec = codec

    def resolve_expressions(self, expressions_json: str | None) -> list[MetricExpression]:
        """Metric expressions from a payload.

        a JSON list of formulas normally. anything that doesn't decode is
        split on commas as-is - no trimming, so "a, b" gives "a" and " b".
        """
        if expressions_json is None:
            return []
        return [MetricExpression(expression=expr) for expr in self._decode_names(expressions_json)]

    def resolve_functions(
        self,
        collection: str,
        dashboard_id: str | None,
        metrics_json: str | None,
    ) -> list[MetricFunction]:
        """Metric functions to query for a dashboard render.

        an explicit metrics payload wins: one SUM per metric name. otherwise
        the dashboard (or the default dashboard) is looked up, but the result
        is always the row-count placeholder.
        """
        if not _is_blank(metrics_json):
            return [
                MetricFunction(agg=AggregationType.SUM, metric_name=name)
                for name in self._decode_names(metrics_json)
            ]

        # TODO: return the dashboard's own metric functions once stored
        # expressions are wired through to the query path
        lookup_id = DEFAULT_DASHBOARD_ID if _is_blank(dashboard_id) else dashboard_id
        config = self.config_store.find_by_id(collection, lookup_id)
        if config is None:
            logger.debug("Dashboard '{}' not found for '{}'", lookup_id, collection)
        return [ROW_COUNT_FUNCTION]

    def dashboard_expressions(self, collection: str, dashboard_id: str) -> list[MetricExpression]:
        """The metric expressions stored on a dashboard ([] if there's no such dashboard)."""
        config = self.config_store.find_by_id(collection, dashboard_id)
        if config is None:
            logger.warning("Dashboard '{}' not found for '{}'", dashboard_id, collection)
            return []
        return config.expressions()

    def _decode_names(self, payload: str) -> list[str]:
        decoded = self.codec.decode_string_list(payload)
        if isinstance(decoded, DecodeError):
            logger.error("Error parsing metrics json: {} message: {}", payload, decoded.message)
            return payload.split(",")
        return decoded


def expressions_from_functions(functions: Sequence[MetricFunction]) -> list[MetricExpression]:
    """One expression per function, named after its metric. The aggregation is dropped."""
    return [MetricExpression(expression=function.metric_name) for function in functions]


def functions_from_expressions(expressions: Sequence[MetricExpression]) -> list[MetricFunction]:
    """All functions the expressions depend on, in order, duplicates kept."""
    functions = []
    for expression in expressions:
        functions.extend(expression.compute_metric_functions())
    return functions


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()
