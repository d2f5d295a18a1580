"""dimscope - query orchestration between dashboards and an OLAP query service."""

from dimscope.service import DashboardService

__all__ = ["DashboardService"]
