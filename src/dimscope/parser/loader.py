"""YAML parser and collection registry for dimscope.

the registry is the local source of truth for collection schemas and
dashboard definitions. it answers both the schema-source and the
dashboard-config-store contracts, so a whole dashboard backend can be
described in a directory of yaml files.
"""

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from dimscope.errors import UnknownCollectionError
from dimscope.models.semantic_model import CollectionSchema, DashboardConfig


class CollectionRegistry:
    """Registry of collection schemas and their dashboards.

    dashboards are kept per collection, in load order, keyed by id.
    """

    def __init__(self) -> None:
        self.collections: dict[str, CollectionSchema] = {}
        self.dashboards: dict[str, dict[str, DashboardConfig]] = {}  # collection -> id -> config

    def load_directory(self, path: Path) -> None:
        """Load all YAML files from a directory (recursively).

        dashboards may live in a different file than their collection, so
        references are only checked once everything is loaded.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Collections directory not found: {path}")

        yaml_files = sorted(list(path.glob("**/*.yaml")) + list(path.glob("**/*.yml")))
        if not yaml_files:
            raise ValueError(f"No YAML files found in {path}")

        pending_dashboards: list[DashboardConfig] = []
        for yaml_file in yaml_files:
            pending_dashboards.extend(self._load_file(yaml_file))

        for dashboard in pending_dashboards:
            self.add_dashboard(dashboard)

        logger.debug(
            "Loaded {} collections and {} dashboards from {}",
            len(self.collections),
            len(pending_dashboards),
            path,
        )

    def _load_file(self, path: Path) -> list[DashboardConfig]:
        """Parse a single YAML file, registering its collections.

        returns the file's dashboards so the caller can register them after
        every collection is known. empty files are ignored.
        """
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return []

        for collection_data in data.get("collections", []):
            self.add_collection(CollectionSchema.model_validate(collection_data))

        return [self._parse_dashboard(d) for d in data.get("dashboards", [])]

    def _parse_dashboard(self, data: dict[str, Any]) -> DashboardConfig:
        # yaml authors write `id`/`name`; accept the long forms too
        return DashboardConfig(
            dashboard_id=data.get("id") or data["dashboard_id"],
            dashboard_name=data.get("name") or data.get("dashboard_name") or data.get("id"),
            collection=data["collection"],
            metric_expressions=data.get("metrics", data.get("metric_expressions", [])),
            description=data.get("description"),
        )

    def add_collection(self, schema: CollectionSchema) -> None:
        if schema.name in self.collections:
            raise ValueError(f"Duplicate collection: {schema.name}")
        self.collections[schema.name] = schema
        self.dashboards.setdefault(schema.name, {})

    def add_dashboard(self, config: DashboardConfig) -> None:
        if config.collection not in self.collections:
            raise ValueError(
                f"Dashboard '{config.dashboard_id}' references unknown "
                f"collection '{config.collection}'"
            )
        by_id = self.dashboards[config.collection]
        if config.dashboard_id in by_id:
            raise ValueError(
                f"Duplicate dashboard id '{config.dashboard_id}' in collection '{config.collection}'"
            )
        by_id[config.dashboard_id] = config

    # --- schema source ---

    def get_collection_schema(self, collection: str) -> CollectionSchema:
        if collection not in self.collections:
            raise UnknownCollectionError(collection)
        return self.collections[collection]

    # --- dashboard config store ---

    def find_all(self, collection: str) -> list[DashboardConfig | None]:
        """Dashboards of a collection in load order; [] for unknown collections."""
        return list(self.dashboards.get(collection, {}).values())

    def find_by_id(self, collection: str, dashboard_id: str) -> DashboardConfig | None:
        return self.dashboards.get(collection, {}).get(dashboard_id)
