"""Pydantic models for metric functions and metric expressions.

a metric function is the low-level thing the query service computes
(aggregation + column). a metric expression is what a dashboard stores: a
formula over one or more metrics, e.g. "clicks / views".
"""

import re
from enum import Enum

import sqlglot
from loguru import logger
from pydantic import BaseModel, ConfigDict, model_validator
from sqlglot import exp
from sqlglot.errors import SqlglotError

# reserved pseudo-metric meaning "number of rows"
COUNT_METRIC = "__COUNT"

# metric names aren't sql identifiers ("7d_views", "null", "__COUNT"), so every
# name-like token is swapped for a placeholder identifier while parsing
_NAME_TOKEN = re.compile(r"[A-Za-z0-9_.]+")
_NUMBER = re.compile(r"\d+(\.\d*)?|\.\d+")
_PLACEHOLDER = "dimscope_metric_{}"

_NAME_STRIP = re.compile(r"[\s+\-*/()]")


class AggregationType(str, Enum):
    """Aggregations the query service understands.

    only SUM is produced by the resolvers today - the others exist so
    stored configs and hand-built requests can still be represented.
    """

    SUM = "SUM"
    COUNT = "COUNT"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class MetricFunction(BaseModel):
    """An aggregation over a single metric column.

    frozen so it can be used as a dict key and inside hashable requests.
    """

    model_config = ConfigDict(frozen=True)

    agg: AggregationType
    metric_name: str

    def __str__(self) -> str:
        # doubles as the result column alias
        return f"{self.agg.value}_{self.metric_name}"


class MetricExpression(BaseModel):
    """A formula over metrics, as stored on a dashboard."""

    model_config = ConfigDict(frozen=True)

    expression: str
    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data):
        # name defaults to the formula with whitespace and operators removed,
        # so "clicks / views" is named "clicksviews"
        if isinstance(data, dict) and not data.get("name") and data.get("expression") is not None:
            data = {**data, "name": _NAME_STRIP.sub("", data["expression"])}
        return data

    def compute_metric_functions(self) -> list[MetricFunction]:
        """Metric functions this formula depends on.

        one SUM per distinct metric referenced, sorted by metric name. a
        formula that doesn't parse is taken to be a single metric name.
        """
        return [
            MetricFunction(agg=AggregationType.SUM, metric_name=name)
            for name in sorted(self._metric_names())
        ]

    def _metric_names(self) -> set[str]:
        placeholders: dict[str, str] = {}  # metric name -> placeholder

        def escape(match: re.Match) -> str:
            token = match.group(0)
            if _NUMBER.fullmatch(token):
                return token
            return placeholders.setdefault(token, _PLACEHOLDER.format(len(placeholders)))

        escaped = _NAME_TOKEN.sub(escape, self.expression)
        try:
            tree = sqlglot.parse_one(escaped)
        except SqlglotError as e:
            logger.warning("Could not parse metric expression '{}': {}", self.expression, e)
            return {self.expression.strip()}

        metric_names = {placeholder: name for name, placeholder in placeholders.items()}
        names = set()
        for column in tree.find_all(exp.Column):
            # placeholders that aren't columns were function names ("abs(x)")
            if column.name in metric_names:
                names.add(metric_names[column.name])

        if not names:
            # constants only ("1") - nothing to fetch
            logger.debug("Metric expression '{}' references no metrics", self.expression)
        return names
