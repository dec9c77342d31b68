"""
Sequential page fetching for OpenFEMA queries.

Handles requests larger than the API's 1000-row cap by:
- Deriving one descriptor per page from a base descriptor (offset = i * page_size)
- Fetching pages strictly one at a time, in order
- Padding each page's rows to the page's observed key set
- Reporting progress per page

Any failed page aborts the whole retrieval; pages fetched so far are discarded.
"""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from openfema_client.api.errors import UpstreamError
from openfema_client.api.models import QueryDescriptor, RawPage
from openfema_client.data.planner import RetrievalPlan, format_duration, reestimate

logger = logging.getLogger(__name__)


@dataclass
class PageInfo:
    """Progress record for one fetched page."""

    page_number: int  # 1-based
    total_pages: int
    offset: int
    row_count: int
    elapsed: timedelta


ProgressCallback = Callable[[PageInfo], None]


def reconcile_page(rows: List[Dict[str, Any]]) -> RawPage:
    """
    Pad every row to the union of keys observed in this page.

    OpenFEMA omits null-valued fields instead of sending explicit nulls, so
    rows within a page can have different key sets. Keys keep first-seen order;
    missing values become None.
    """
    columns: Dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return [{key: row.get(key) for key in columns} for row in rows]


class PagedFetcher:
    """
    Execute a page sequence against a client exposing ``fetch_page``.

    Example:
        fetcher = PagedFetcher(client)
        pages = fetcher.fetch(base_descriptor, page_count=3, total_records=2500)
    """

    def __init__(self, client):
        self.client = client

    def fetch(
        self,
        base: QueryDescriptor,
        page_count: int,
        total_records: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        plan: Optional[RetrievalPlan] = None,
    ) -> List[RawPage]:
        """
        Fetch ``page_count`` pages in order.

        Args:
            base: Descriptor for page 0; later pages only change the offset
            page_count: Number of pages to fetch
            total_records: Planned total; caps $top on the final page
            progress_callback: Called with a PageInfo after each page
            plan: Plan being executed, used to refresh the time estimate

        Returns:
            One reconciled RawPage per page, in page order

        Raises:
            UpstreamError: On any non-2xx page (no partial result)
            TransientNetworkError: Raised by the client on timeout/connectivity failure
        """
        pages: List[RawPage] = []
        page_size = base.page_size

        for index in range(page_count):
            limit = None
            if total_records is not None:
                remaining = total_records - index * page_size
                if remaining < page_size:
                    limit = max(remaining, 1)
            descriptor = base.at_page(index, limit=limit)

            start = time.perf_counter()
            response = self.client.fetch_page(descriptor)
            elapsed = timedelta(seconds=time.perf_counter() - start)

            if not response.ok:
                message = response.upstream_message()
                raise UpstreamError(
                    f"Page {index + 1}/{page_count} of {base.dataset_id} failed with "
                    f"{response.status_code}: {message}",
                    status_code=response.status_code,
                    page_index=index,
                    upstream_message=message,
                )

            rows = response.rows(base.dataset_id)
            if rows is None or not all(isinstance(row, dict) for row in rows):
                raise UpstreamError(
                    f"Page {index + 1}/{page_count} of {base.dataset_id} did not contain a row list",
                    status_code=response.status_code,
                    page_index=index,
                )

            pages.append(reconcile_page(rows))

            info = PageInfo(
                page_number=index + 1,
                total_pages=page_count,
                offset=descriptor.offset,
                row_count=len(rows),
                elapsed=elapsed,
            )
            logger.info(
                f"{base.dataset_id}: page {info.page_number}/{info.total_pages} "
                f"({info.row_count} rows, {elapsed.total_seconds():.2f}s)"
            )
            if index == 0 and plan is not None and page_count > 1:
                logger.info(
                    f"Estimated time remaining: "
                    f"{format_duration(reestimate(plan, elapsed, pages_done=1))}"
                )

            if progress_callback:
                try:
                    progress_callback(info)
                except Exception as e:
                    logger.error(f"Progress callback error: {e}")

        return pages
