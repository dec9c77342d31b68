"""
Count probe: ask OpenFEMA how many records match a query without fetching them.
"""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from openfema_client.api.errors import UpstreamError
from openfema_client.api.models import QueryDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Total matching records and the round-trip time of the probe request."""

    total: int
    latency: timedelta


def probe(client, descriptor: QueryDescriptor, identifier_field: str = "id") -> ProbeResult:
    """
    Issue a 1-row request selecting only the identifier field and read
    ``metadata.count`` from the response.

    Args:
        client: Object exposing ``fetch_page(descriptor) -> PageResponse``
        descriptor: Query whose filter determines the count
        identifier_field: Field used for the minimal $select

    Raises:
        UpstreamError: Non-2xx status or a response without a count
        TransientNetworkError: Raised by the client on timeout/connectivity failure
    """
    probe_descriptor = descriptor.model_copy(
        update={
            "page_size": 1,
            "offset": 0,
            "limit": None,
            "selected_fields": (identifier_field,),
        }
    )

    start = time.perf_counter()
    response = client.fetch_page(probe_descriptor)
    latency = timedelta(seconds=time.perf_counter() - start)

    if not response.ok:
        message = response.upstream_message()
        raise UpstreamError(
            f"Count probe for {descriptor.dataset_id} failed with "
            f"{response.status_code}: {message}",
            status_code=response.status_code,
            upstream_message=message,
        )

    total: Optional[int] = response.total_count()
    if total is None or total < 0:
        raise UpstreamError(
            f"Count probe for {descriptor.dataset_id} returned no record count",
            status_code=response.status_code,
        )

    logger.info(
        f"{descriptor.dataset_id}: {total} matching records "
        f"(probe took {latency.total_seconds() * 1000:.0f}ms)"
    )
    return ProbeResult(total=total, latency=latency)
