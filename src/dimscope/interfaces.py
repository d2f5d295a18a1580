"""Contracts for the collaborators dimscope orchestrates.

the resolvers only ever talk to these protocols. the yaml registry and the
duckdb dispatcher are the bundled implementations, but anything with the
same methods plugs in.
"""

from collections.abc import Sequence
from concurrent.futures import Future
from typing import Protocol

from dimscope.models.query import QueryRequest, QueryResponse
from dimscope.models.semantic_model import CollectionSchema, DashboardConfig


class QueryDispatcher(Protocol):
    """Runs query requests, returning one future per request."""

    def dispatch(
        self, requests: Sequence[QueryRequest]
    ) -> dict[QueryRequest, Future[QueryResponse]]:
        """Submit all requests; each future resolves (or fails) independently."""


class SchemaSource(Protocol):
    """Source of collection schemas."""

    def get_collection_schema(self, collection: str) -> CollectionSchema:
        """Schema for a collection. Raises if the collection is unknown."""


class DashboardConfigStore(Protocol):
    """Persisted dashboard definitions."""

    def find_all(self, collection: str) -> list[DashboardConfig | None]:
        """All dashboards for a collection. Entries may be None."""

    def find_by_id(self, collection: str, dashboard_id: str) -> DashboardConfig | None:
        """A single dashboard, or None when there is no such id."""
