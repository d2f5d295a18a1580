"""DuckDB query executor for dimscope.

stands in for the remote olap service when running locally or in tests.
the dispatcher calls execute() from worker threads, and a duckdb connection
must not be shared across threads, so every execute() runs on its own cursor
(a duckdb cursor is a separate connection to the same database).
"""

import threading
import time
from pathlib import Path
from typing import Any

import duckdb

from dimscope.models.query import QueryResult


class DuckDBExecutor:
    """Execute queries against DuckDB.

    owns the root connection; per-query cursors are derived from it.
    """

    def __init__(self, database_path: str | None = None) -> None:
        """Initialize the executor.

        Args:
            database_path: Path to DuckDB file, or None for in-memory.
        """
        self.database_path = database_path
        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init
        self._lock = threading.Lock()

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the root DuckDB connection."""
        with self._lock:
            if self._conn is None:
                self._conn = duckdb.connect(self.database_path or ":memory:")
            return self._conn

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        # cursor creation touches the root connection, so it is serialized too
        conn = self.conn
        with self._lock:
            return conn.cursor()

    def execute(self, sql: str) -> QueryResult:
        """Execute SQL on a fresh cursor and return structured results."""
        start = time.perf_counter()

        cursor = self._cursor()
        try:
            result = cursor.execute(sql)
            # statements without a result set have no description
            columns = [desc[0] for desc in result.description] if result.description else []
            rows = result.fetchall() if columns else []
        finally:
            cursor.close()

        elapsed_ms = (time.perf_counter() - start) * 1000
        data = [dict(zip(columns, row)) for row in rows]

        return QueryResult(
            sql=sql,
            columns=columns,
            data=data,
            row_count=len(data),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def load_parquet(self, table_name: str, path: str | Path) -> None:
        """Load a Parquet file as a table (replacing any existing one)."""
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {table_name} AS
            SELECT * FROM read_parquet('{path}')
        """)

    def load_csv(self, table_name: str, path: str | Path) -> None:
        """Load a CSV file as a table; duckdb sniffs delimiters and types."""
        path = Path(path)
        self.conn.execute(f"""
            CREATE OR REPLACE TABLE {table_name} AS
            SELECT * FROM read_csv_auto('{path}')
        """)

    def table_exists(self, table_name: str) -> bool:
        result = self.conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
            [table_name],
        )
        return result.fetchone()[0] > 0

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "DuckDBExecutor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
