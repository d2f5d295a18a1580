"""Main DashboardService interface for dimscope."""

from datetime import datetime
from pathlib import Path

from dimscope.config import Settings, get_settings
from dimscope.dashboards import list_dashboards
from dimscope.dimensions import dimensions_to_group_by, list_dimensions, select_group_by_dimensions
from dimscope.dispatcher import DuckDBQueryDispatcher
from dimscope.executor.duckdb_executor import DuckDBExecutor
from dimscope.fanout import discover_dimension_values
from dimscope.filters import normalize_filters, restrict_filters
from dimscope.metrics import (
    MetricExpressionResolver,
    expressions_from_functions,
    functions_from_expressions,
)
from dimscope.models.metric import COUNT_METRIC, MetricExpression, MetricFunction
from dimscope.models.query import DimensionValueCatalog
from dimscope.parser.loader import CollectionRegistry


class DashboardService:
    """Everything a dashboard render needs, behind one object.

    wires the yaml registry (schemas + dashboards), the duckdb executor and
    the fan-out dispatcher together.
    """

    def __init__(
        self,
        collections_path: str | Path | None = None,
        database_path: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            collections_path: Directory of collection/dashboard YAML files.
                Defaults to settings.collections_dir.
            database_path: Path to DuckDB file, or None for the configured
                default (in-memory unless set).
            settings: Settings to use instead of the environment.
        """
        self.settings = settings or get_settings()
        self.collections_path = Path(collections_path or self.settings.collections_dir)

        self.registry = CollectionRegistry()
        self.executor = DuckDBExecutor(database_path or self.settings.database_path)
        self.dispatcher = DuckDBQueryDispatcher(
            self.executor, self.registry, max_workers=self.settings.max_workers
        )
        self.resolver = MetricExpressionResolver(self.registry)

        # fail fast on broken yaml
        self.registry.load_directory(self.collections_path)

    # --- dimensions ---

    def list_dimensions(self, collection: str) -> list[str]:
        """Sorted dimension names of a collection."""
        return list_dimensions(self.registry, collection)

    def group_by_dimensions(self, collection: str, filter_json: str | None = None) -> list[str]:
        """Dimensions not pinned by the (normalized) filter."""
        filters = normalize_filters(filter_json) if filter_json is not None else None
        return dimensions_to_group_by(self.registry, collection, filters)

    def dimension_values(
        self,
        collection: str,
        metric_name: str,
        start: datetime,
        end: datetime,
        filter_json: str | None = None,
        timeout: float | None = None,
    ) -> DimensionValueCatalog:
        """Values of every unfiltered dimension within [start, end).

        the filter both excludes its dimensions from discovery and restricts
        the rows the other dimensions' values come from. filter keys that
        aren't dimensions of the collection are ignored.
        """
        all_dimensions = self.list_dimensions(collection)
        filters = restrict_filters(normalize_filters(filter_json), set(all_dimensions))
        dimensions = select_group_by_dimensions(all_dimensions, filters)
        return discover_dimension_values(
            self.dispatcher,
            collection,
            self.settings.request_reference,
            metric_name,
            dimensions,
            start,
            end,
            timeout=timeout if timeout is not None else self.settings.discovery_timeout_seconds,
            filters=filters,
        )

    # --- dashboards and metrics ---

    def list_dashboards(self, collection: str) -> list[str]:
        return list_dashboards(self.registry, collection)

    def metric_functions(
        self,
        collection: str,
        dashboard_id: str | None = None,
        metrics_json: str | None = None,
    ) -> list[MetricFunction]:
        return self.resolver.resolve_functions(collection, dashboard_id, metrics_json)

    def metric_expressions(
        self,
        collection: str,
        dashboard_id: str | None = None,
        metrics_json: str | None = None,
    ) -> list[MetricExpression]:
        """Expressions for a view: the payload's if given, else those of the resolved functions."""
        if metrics_json is not None:
            return self.resolver.resolve_expressions(metrics_json)
        return expressions_from_functions(self.metric_functions(collection, dashboard_id))

    def dashboard_expressions(self, collection: str, dashboard_id: str) -> list[MetricExpression]:
        return self.resolver.dashboard_expressions(collection, dashboard_id)

    def validate(self) -> list[str]:
        """Check every dashboard formula against its collection. Returns a list of errors."""
        errors = []
        for collection, dashboards in self.registry.dashboards.items():
            known = set(self.registry.get_collection_schema(collection).metrics)
            for dashboard in dashboards.values():
                for function in functions_from_expressions(dashboard.expressions()):
                    if function.metric_name not in known and function.metric_name != COUNT_METRIC:
                        errors.append(
                            f"Dashboard '{dashboard.dashboard_id}' ({collection}): "
                            f"unknown metric '{function.metric_name}'"
                        )
        return errors

    # --- data loading, mostly for local runs ---

    def load_table(self, collection: str, path: str | Path) -> None:
        """Load a csv or parquet file as the collection's table."""
        table = self.registry.get_collection_schema(collection).get_table_name()
        path = Path(path)
        if path.suffix == ".parquet":
            self.executor.load_parquet(table, path)
        else:
            self.executor.load_csv(table, path)

    def close(self) -> None:
        self.dispatcher.close()
        self.executor.close()

    def __enter__(self) -> "DashboardService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
