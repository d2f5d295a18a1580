"""Basic usage example for dimscope."""

import sys
from datetime import datetime
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dimscope import DashboardService

HERE = Path(__file__).parent


def main():
    """Walk through a dashboard render against the bundled sample data."""
    with DashboardService(HERE / "collections") as service:
        service.load_table("pageviews", HERE / "pageviews.csv")

        print("=" * 60)
        print("dimscope pageviews demo")
        print("=" * 60)

        # 1. What can be grouped by
        print("\n1. Dimensions:")
        print(f"   {service.list_dimensions('pageviews')}")

        # 2. Dashboards
        print("\n2. Dashboards:")
        for name in service.list_dashboards("pageviews"):
            print(f"   - {name}")

        # 3. Dimension values for the first two days, US only
        print("\n3. Dimension values (country = US):")
        catalog = service.dimension_values(
            "pageviews",
            "views",
            start=datetime(2024, 1, 1),
            end=datetime(2024, 1, 3),
            filter_json='{"country": ["US"]}',
        )
        for dimension in sorted(catalog):
            print(f"   {dimension}: {catalog[dimension]}")

        # 4. Metric resolution
        print("\n4. Metric functions for an explicit payload:")
        for function in service.metric_functions("pageviews", metrics_json='["views", "clicks"]'):
            print(f"   {function}")

        print("\n5. Expressions stored on the engagement dashboard:")
        for expression in service.dashboard_expressions("pageviews", "engagement"):
            functions = ", ".join(str(f) for f in expression.compute_metric_functions())
            print(f"   {expression.expression} -> {functions}")


if __name__ == "__main__":
    main()
