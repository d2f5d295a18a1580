"""Tests for the group-by fan-out."""

from datetime import datetime

import pytest

from dimscope.errors import DiscoveryTimeoutError
from dimscope.fanout import build_requests, discover_dimension_values
from dimscope.metrics import ROW_COUNT_FUNCTION
from dimscope.models.metric import AggregationType, MetricFunction

START = datetime(2024, 1, 1)
END = datetime(2024, 1, 8)
DIMS = ["browser", "country", "device"]


class TestBuildRequests:
    def test_one_request_per_dimension_in_order(self):
        fn = MetricFunction(agg=AggregationType.SUM, metric_name="views")
        requests = build_requests("pageviews", "ref", fn, DIMS, START, END)

        assert [r.group_by for r in requests] == DIMS
        for request in requests:
            assert request.collection == "pageviews"
            assert request.reference == "ref"
            assert request.metric_functions == (fn,)
            assert (request.start, request.end) == (START, END)
            assert request.filter_set == ()

    def test_no_dimensions(self):
        assert build_requests("pageviews", "ref", ROW_COUNT_FUNCTION, [], START, END) == []

    def test_duplicate_dimensions_collapsed(self):
        requests = build_requests(
            "pageviews", "ref", ROW_COUNT_FUNCTION, ["country", "browser", "country"], START, END
        )
        assert [r.group_by for r in requests] == ["country", "browser"]

    def test_filters_carried_on_every_request(self):
        requests = build_requests(
            "pageviews", "ref", ROW_COUNT_FUNCTION, ["browser", "device"], START, END,
            filters={"country": ["US", "CA"]},
        )
        assert all(r.filters() == {"country": ["US", "CA"]} for r in requests)


class TestDiscoverDimensionValues:
    def test_values_per_dimension(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory(
            {
                "browser": ["chrome", "firefox"],
                "country": ["CA", "US"],
                "device": ["desktop"],
            }
        )
        catalog = discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", DIMS, START, END
        )
        # key order across dimensions isn't guaranteed - compare as a dict
        assert catalog == {
            "browser": ["chrome", "firefox"],
            "country": ["CA", "US"],
            "device": ["desktop"],
        }

    def test_one_batch_one_request_per_dimension(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({})
        discover_dimension_values(dispatcher, "pageviews", "ref", "views", DIMS, START, END)

        assert len(dispatcher.dispatched) == 1
        requests = dispatcher.dispatched[0]
        assert len(requests) == 3
        assert sorted(r.group_by for r in requests) == sorted(DIMS)
        for request in requests:
            assert (request.start, request.end) == (START, END)

    def test_always_counts_rows(self, fake_dispatcher_factory):
        """The visualized metric doesn't change what discovery queries."""
        dispatcher = fake_dispatcher_factory({})
        discover_dimension_values(dispatcher, "pageviews", "ref", "clicks", DIMS, START, END)
        for request in dispatcher.dispatched[0]:
            assert request.metric_functions == (ROW_COUNT_FUNCTION,)
            assert ROW_COUNT_FUNCTION.metric_name == "__COUNT"

    def test_duplicates_and_row_order_kept(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({"country": ["US", "CA", "US"]})
        catalog = discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", ["country"], START, END
        )
        assert catalog == {"country": ["US", "CA", "US"]}

    def test_null_values_become_empty_strings(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({"country": [None, "US"]})
        catalog = discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", ["country"], START, END
        )
        assert catalog == {"country": ["", "US"]}

    def test_empty_dimension_list_skips_dispatch(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({})
        assert discover_dimension_values(dispatcher, "pageviews", "ref", "views", [], START, END) == {}
        assert dispatcher.dispatched == []

    def test_one_failure_fails_everything(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory(
            {"browser": ["chrome"], "device": ["desktop"]},
            failures={"country": RuntimeError("broker unavailable")},
        )
        with pytest.raises(RuntimeError, match="broker unavailable"):
            discover_dimension_values(dispatcher, "pageviews", "ref", "views", DIMS, START, END)

    def test_failure_cancels_outstanding(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory(
            {"browser": ["chrome"]},
            failures={"country": RuntimeError("boom")},
            hang={"device"},
        )
        with pytest.raises(RuntimeError, match="boom"):
            discover_dimension_values(dispatcher, "pageviews", "ref", "views", DIMS, START, END)
        assert dispatcher.futures["device"].cancelled()

    def test_timeout_cancels_and_raises(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory(
            {"browser": ["chrome"], "country": ["US"]}, hang={"device"}
        )
        with pytest.raises(DiscoveryTimeoutError) as excinfo:
            discover_dimension_values(
                dispatcher, "pageviews", "ref", "views", DIMS, START, END, timeout=0.05
            )
        assert excinfo.value.pending == ["device"]
        assert excinfo.value.timeout == 0.05
        assert dispatcher.futures["device"].cancelled()

    def test_timeout_is_a_timeout_error(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({}, hang={"country"})
        with pytest.raises(TimeoutError):
            discover_dimension_values(
                dispatcher, "pageviews", "ref", "views", ["country"], START, END, timeout=0.01
            )

    def test_completes_within_timeout(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({"country": ["US"]})
        catalog = discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", ["country"], START, END, timeout=5
        )
        assert catalog == {"country": ["US"]}

    def test_filters_passed_to_requests(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({})
        discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", ["browser"], START, END,
            filters={"country": ["US"]},
        )
        assert dispatcher.dispatched[0][0].filter_set == (("country", "US"),)

    def test_duplicate_dimensions_queried_once(self, fake_dispatcher_factory):
        dispatcher = fake_dispatcher_factory({"country": ["US"]})
        catalog = discover_dimension_values(
            dispatcher, "pageviews", "ref", "views", ["country", "country"], START, END, timeout=5
        )
        assert catalog == {"country": ["US"]}
        assert [r.group_by for r in dispatcher.dispatched[0]] == ["country"]
