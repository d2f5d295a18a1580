"""Pytest fixtures for dimscope tests."""

from collections.abc import Generator
from concurrent.futures import Future
from datetime import datetime
from pathlib import Path

import pytest
from loguru import logger

from dimscope.config import Settings
from dimscope.executor.duckdb_executor import DuckDBExecutor
from dimscope.models.query import QueryRequest, QueryResponse, QueryResult
from dimscope.parser.loader import CollectionRegistry
from dimscope.service import DashboardService


@pytest.fixture
def sample_collections_yaml() -> str:
    """Sample collection/dashboard YAML content for testing."""
    return """
collections:
  - name: pageviews
    description: "Test page view events"
    table: pageviews
    time_column: event_time
    dimensions:
      - device
      - country
      - browser
    metrics:
      - views
      - clicks

  - name: empty_collection
    time_column: ts
    dimensions: []

dashboards:
  - id: engagement
    name: Engagement
    collection: pageviews
    metrics:
      - "clicks / views"
      - views

  - id: traffic
    name: Traffic
    collection: pageviews
    metrics:
      - views
"""


@pytest.fixture
def collections_dir(tmp_path: Path, sample_collections_yaml: str) -> Path:
    """Create a temporary collections directory with sample YAML."""
    path = tmp_path / "collections"
    path.mkdir()
    (path / "test.yaml").write_text(sample_collections_yaml)
    return path


@pytest.fixture
def registry(collections_dir: Path) -> CollectionRegistry:
    """Create a loaded CollectionRegistry."""
    reg = CollectionRegistry()
    reg.load_directory(collections_dir)
    return reg


@pytest.fixture
def sample_pageviews_data() -> list[tuple]:
    """Sample page view rows: (event_time, country, browser, device, views, clicks)."""
    return [
        ("2024-01-01 09:00:00", "US", "chrome", "desktop", 10, 2),
        ("2024-01-01 10:30:00", "US", "firefox", "mobile", 4, 1),
        ("2024-01-01 11:15:00", "CA", "chrome", "mobile", 7, 0),
        ("2024-01-02 08:00:00", "DE", "safari", "tablet", 3, 1),
        ("2024-01-02 16:45:00", "CA", "safari", "desktop", 5, 3),
        ("2024-01-03 12:00:00", "US", "chrome", "desktop", 8, 2),
        ("2024-01-05 00:00:00", "FR", "edge", "mobile", 1, 0),
    ]


PAGEVIEWS_DDL = """
    CREATE TABLE pageviews (
        event_time TIMESTAMP,
        country VARCHAR,
        browser VARCHAR,
        device VARCHAR,
        views INTEGER,
        clicks INTEGER
    )
"""


@pytest.fixture
def db_with_data(sample_pageviews_data: list[tuple]) -> Generator[DuckDBExecutor, None, None]:
    """Create a DuckDB executor with sample data."""
    executor = DuckDBExecutor()
    executor.conn.execute(PAGEVIEWS_DDL)
    executor.conn.executemany(
        "INSERT INTO pageviews VALUES (?, ?, ?, ?, ?, ?)",
        sample_pageviews_data,
    )
    yield executor
    executor.close()


@pytest.fixture
def settings(collections_dir: Path) -> Settings:
    return Settings(
        collections_dir=collections_dir,
        database_path=None,
        max_workers=4,
        discovery_timeout_seconds=10.0,
        _env_file=None,
    )


@pytest.fixture
def service_with_data(
    settings: Settings, sample_pageviews_data: list[tuple]
) -> Generator[DashboardService, None, None]:
    """Create a DashboardService with loaded data."""
    service = DashboardService(settings=settings)
    service.executor.conn.execute(PAGEVIEWS_DDL)
    service.executor.conn.executemany(
        "INSERT INTO pageviews VALUES (?, ?, ?, ?, ?, ?)",
        sample_pageviews_data,
    )
    yield service
    service.close()


@pytest.fixture
def window() -> tuple[datetime, datetime]:
    """[2024-01-01, 2024-01-03) - the first five sample rows."""
    return datetime(2024, 1, 1), datetime(2024, 1, 3)


@pytest.fixture
def log_records() -> Generator[list[dict], None, None]:
    """Capture loguru records emitted during a test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def make_response(request: QueryRequest, values: list[str | None]) -> QueryResponse:
    """A response with one row per value for the request's group-by dimension."""
    column = str(request.metric_functions[0])
    data = [{request.group_by: value, column: 1} for value in values]
    return QueryResponse(
        request=request,
        result=QueryResult(
            sql="-- fake",
            columns=[request.group_by, column],
            data=data,
            row_count=len(data),
            execution_time_ms=0.0,
        ),
    )


class FakeDispatcher:
    """Dispatcher that answers from a dimension -> values table.

    dimensions listed in `failures` get a failed future, dimensions in
    `hang` get a future that never resolves.
    """

    def __init__(
        self,
        values: dict[str, list[str | None]],
        failures: dict[str, Exception] | None = None,
        hang: set[str] | None = None,
    ) -> None:
        self.values = values
        self.failures = failures or {}
        self.hang = hang or set()
        self.dispatched: list[list[QueryRequest]] = []
        self.futures: dict[str, Future] = {}

    def dispatch(self, requests):
        self.dispatched.append(list(requests))
        futures = {}
        for request in requests:
            future: Future = Future()
            dimension = request.group_by
            if dimension in self.failures:
                future.set_exception(self.failures[dimension])
            elif dimension not in self.hang:
                future.set_result(make_response(request, self.values.get(dimension, [])))
            self.futures[dimension] = future
            futures[request] = future
        return futures


@pytest.fixture
def fake_dispatcher_factory():
    return FakeDispatcher
