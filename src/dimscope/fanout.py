"""Group-by fan-out: discover the values of many dimensions at once.

one single-metric, single-group-by request per dimension, all dispatched in
one batch. the dispatcher owns the parallelism; this module only waits on the
futures and stitches the rows back together by dimension.

the dispatcher's request -> future mapping has no meaningful order, so results
are keyed by dimension the moment each future completes. callers shouldn't
rely on the key order of the returned catalog.
"""

from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, wait
from datetime import datetime

from loguru import logger

from dimscope.errors import DiscoveryTimeoutError
from dimscope.interfaces import QueryDispatcher
from dimscope.metrics import ROW_COUNT_FUNCTION
from dimscope.models.metric import MetricFunction
from dimscope.models.query import DimensionValueCatalog, FilterMap, QueryRequest, QueryResponse


def build_requests(
    collection: str,
    reference: str,
    metric_function: MetricFunction,
    dimensions: Sequence[str],
    start: datetime,
    end: datetime,
    filters: FilterMap | None = None,
) -> list[QueryRequest]:
    """One request per distinct dimension over [start, end), in first-seen order.

    duplicates would build equal requests, and a dispatcher keys its futures
    by request.
    """
    filter_set = QueryRequest.flatten_filters(filters)
    return [
        QueryRequest(
            collection=collection,
            reference=reference,
            metric_functions=(metric_function,),
            start=start,
            end=end,
            group_by=dimension,
            filter_set=filter_set,
        )
        for dimension in dict.fromkeys(dimensions)
    ]


def discover_dimension_values(
    dispatcher: QueryDispatcher,
    collection: str,
    reference: str,
    metric_name: str,
    dimensions: Sequence[str],
    start: datetime,
    end: datetime,
    timeout: float | None = None,
    filters: FilterMap | None = None,
) -> DimensionValueCatalog:
    """Values observed for each dimension in [start, end).

    values are always discovered by counting rows, whatever `metric_name` the
    dashboard is showing - it is only logged. each dimension's values keep
    the response's row order and aren't deduplicated here.

    any failed sub-query fails the whole call (remaining sub-queries are
    cancelled, the original error is re-raised). with a `timeout`, the whole
    batch must finish within that many seconds or DiscoveryTimeoutError is
    raised and everything still pending is cancelled.
    """
    requests = build_requests(collection, reference, ROW_COUNT_FUNCTION, dimensions, start, end, filters)
    if not requests:
        return {}

    logger.debug(
        "Discovering values of {} dimensions of '{}' for metric '{}'",
        len(requests),
        collection,
        metric_name,
    )
    futures = dispatcher.dispatch(requests)
    # future -> dimension, so completion order doesn't matter
    pending: dict[Future[QueryResponse], str] = {
        future: request.group_by for request, future in futures.items()
    }

    catalog: DimensionValueCatalog = {}
    try:
        done, not_done = wait(pending, timeout=timeout, return_when=FIRST_EXCEPTION)
        for future in done:
            dimension = pending[future]
            # result() re-raises the sub-query's own exception
            catalog[dimension] = _dimension_values(future.result(), dimension)
        if not_done:
            raise DiscoveryTimeoutError(timeout, sorted(pending[future] for future in not_done))
    except BaseException as e:
        _cancel(pending)
        if isinstance(e, DiscoveryTimeoutError):
            logger.warning("{}", e)
        else:
            logger.error("Dimension value discovery for '{}' failed: {}", collection, e)
        raise

    return catalog


def _dimension_values(response: QueryResponse, dimension: str) -> list[str]:
    values = []
    for index in range(response.num_rows(ROW_COUNT_FUNCTION)):
        row = response.row(ROW_COUNT_FUNCTION, index)
        values.append(row.get(dimension))
    return values


def _cancel(futures) -> None:
    cancelled = sum(1 for future in futures if future.cancel())
    if cancelled:
        logger.debug("Cancelled {} outstanding sub-queries", cancelled)
