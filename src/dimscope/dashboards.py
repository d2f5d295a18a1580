"""Dashboard listing for a collection."""

from loguru import logger

from dimscope.interfaces import DashboardConfigStore

# id of the dashboard used when a request names none. the misspelling is the
# literal stored in existing configs, keep it
DEFAULT_DASHBOARD_ID = "dafaultDashboard"

# shown when a collection has no dashboards configured
DEFAULT_DASHBOARD_NAME = "Default_All_Metrics_Dashboard"


def list_dashboards(config_store: DashboardConfigStore, collection: str) -> list[str]:
    """Names of the dashboards configured for a collection.

    missing configuration isn't an error - the collection just gets the
    default all-metrics dashboard.
    """
    dashboards = [
        config.dashboard_name
        for config in config_store.find_all(collection)
        if config is not None
    ]
    if not dashboards:
        logger.debug("No dashboards configured for '{}', using default", collection)
        dashboards.append(DEFAULT_DASHBOARD_NAME)
    return dashboards
