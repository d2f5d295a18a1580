"""Thread-pool query dispatcher backed by DuckDB.

each request is compiled against its collection's schema and executed on a
worker thread. compile errors and query errors are not raised from
dispatch() - they fail that request's future, like a remote service would.
"""

from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from loguru import logger

from dimscope.compiler.sql_builder import RequestCompiler
from dimscope.executor.duckdb_executor import DuckDBExecutor
from dimscope.interfaces import SchemaSource
from dimscope.models.query import QueryRequest, QueryResponse


class DuckDBQueryDispatcher:
    """Runs query requests concurrently against a DuckDBExecutor."""

    def __init__(
        self,
        executor: DuckDBExecutor,
        schema_source: SchemaSource,
        max_workers: int = 8,
        compiler: RequestCompiler | None = None,
    ) -> None:
        self.executor = executor
        self.schema_source = schema_source
        self.compiler = compiler or RequestCompiler()
        self.max_workers = max_workers
        self._pool: ThreadPoolExecutor | None = None  # lazy, like the db connection

    @property
    def pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="dimscope-query"
            )
        return self._pool

    def dispatch(
        self, requests: Sequence[QueryRequest]
    ) -> dict[QueryRequest, Future[QueryResponse]]:
        """Submit every request; one future per request, in request order."""
        futures: dict[QueryRequest, Future[QueryResponse]] = {}
        for request in requests:
            futures[request] = self.pool.submit(self.run, request)
        logger.debug("Dispatched {} requests on {} workers", len(futures), self.max_workers)
        return futures

    def run(self, request: QueryRequest) -> QueryResponse:
        """Compile and execute a single request (blocking)."""
        sql = self.compile(request)
        result = self.executor.execute(sql)
        logger.debug(
            "Request '{}' group_by={} returned {} rows in {}ms",
            request.reference,
            request.group_by,
            result.row_count,
            result.execution_time_ms,
        )
        return QueryResponse(request=request, result=result)

    def compile(self, request: QueryRequest) -> str:
        schema = self.schema_source.get_collection_schema(request.collection)
        return self.compiler.compile(request, schema)

    def close(self) -> None:
        """Shut down the worker pool, cancelling anything not yet started."""
        if self._pool is not None:
            self._pool.shutdown(wait=True, cancel_futures=True)
            self._pool = None

    def __enter__(self) -> "DuckDBQueryDispatcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
