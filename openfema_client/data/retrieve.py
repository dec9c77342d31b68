"""
Paginated retrieval of OpenFEMA datasets.

retrieve() runs the full flow for one request:

    QueryBuilder -> CountProbe -> IterationPlanner -> ConfirmationGate
        -> PagedFetcher -> ResultNormalizer

At most one request is in flight at any time: the count probe precedes the
confirmation prompt, and the prompt precedes every data page. All state lives
in the call; nothing is kept between retrievals.
"""

import logging
from typing import Optional

import pandas as pd

from openfema_client.api.client import OpenFemaClient
from openfema_client.api.errors import InvalidQueryError, RetrievalAbortedError
from openfema_client.config import clamp_page_size, get_settings
from openfema_client.data.catalog import DatasetCatalog, get_catalog
from openfema_client.data.confirmation import ConfirmCallback, ConfirmationGate, GateState
from openfema_client.data.normalize import empty_table, normalize
from openfema_client.data.pagination import PagedFetcher, ProgressCallback
from openfema_client.data.planner import describe, plan
from openfema_client.data.probe import probe
from openfema_client.data.query_builder import FieldSelection, FilterSpec, QueryBuilder

logger = logging.getLogger(__name__)


def retrieve(
    dataset_id: str,
    selected_fields: FieldSelection = None,
    filter_spec: Optional[FilterSpec] = None,
    top_n: Optional[int] = None,
    ask_before_call: bool = True,
    *,
    client: Optional[OpenFemaClient] = None,
    catalog: Optional[DatasetCatalog] = None,
    confirm: Optional[ConfirmCallback] = None,
    progress_callback: Optional[ProgressCallback] = None,
    page_size: Optional[int] = None,
) -> pd.DataFrame:
    """
    Retrieve records from an OpenFEMA dataset as a pandas DataFrame.

    Args:
        dataset_id: Dataset name, matched case-insensitively (e.g. "fimanfipclaims")
        selected_fields: Fields to return; None or "all" for every field
        filter_spec: Mapping of field -> predicate(s), e.g. {"yearOfLoss": [">= 2010", "<= 2020"]}
        top_n: Maximum number of records; values up to the page size skip the count probe
        ask_before_call: Ask for confirmation before multi-page retrievals
        client: HTTP client to use (one is created and closed when omitted)
        catalog: Dataset catalog (defaults to the built-in registry)
        confirm: Callback deciding multi-page retrievals; defaults to a console prompt
        progress_callback: Called with a PageInfo after each page
        page_size: Rows per page (defaults to OPENFEMA_PAGE_SIZE, max 1000)

    Returns:
        DataFrame with one column per field seen and ``attrs["column_types"]``

    Raises:
        UnknownDatasetError: Dataset name not in the catalog (no request is made)
        InvalidQueryError: Malformed filters, selection, top_n or page_size
        TransientNetworkError: Timeout or connectivity failure
        UpstreamError: Non-2xx response from the probe or any page
        RetrievalAbortedError: Confirmation declined; ``.result`` is an empty table
        ResultAssemblyError: Page row counts indicate truncated transport

    Example:
        claims = retrieve(
            "FimaNfipClaims",
            filter_spec={"countyCode": "= 01001", "yearOfLoss": [">= 2010", "<= 2020"]},
            top_n=100,
        )
    """
    catalog = catalog or get_catalog()
    dataset = catalog.get_dataset(dataset_id)

    if top_n is not None and (isinstance(top_n, bool) or not isinstance(top_n, int) or top_n < 1):
        raise InvalidQueryError("top_n", top_n, "a positive integer or None")

    if page_size is not None and (
        isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1
    ):
        raise InvalidQueryError("page_size", page_size, "a positive integer")
    page_size = clamp_page_size(page_size) if page_size is not None else get_settings().page_size
    builder = QueryBuilder(catalog)

    owns_client = client is None
    client = client or OpenFemaClient()
    try:
        if top_n is not None and top_n <= page_size:
            # A single page covers the request: no probe, no plan, no prompt
            base = builder.build(dataset.name, selected_fields, filter_spec, page_size=top_n)
            pages = PagedFetcher(client).fetch(base, page_count=1, progress_callback=progress_callback)
            return normalize(
                pages,
                dataset.name,
                page_size=top_n,
                expected_total=top_n,
                date_fields=dataset.date_fields,
                selected_fields=base.selected_fields,
            )

        base = builder.build(dataset.name, selected_fields, filter_spec, page_size=page_size)
        probed = probe(client, base, dataset.identifier_field)
        total = min(probed.total, top_n) if top_n is not None else probed.total

        retrieval_plan = plan(total, page_size, probed.latency, ask_before_call)
        if retrieval_plan.is_empty:
            logger.info(f"{dataset.name}: no records match the query")
            return empty_table(dataset.name, base.selected_fields, dataset.date_fields)
        if retrieval_plan.page_count > 1:
            logger.info(describe(retrieval_plan))

        if confirm is None and retrieval_plan.requires_confirmation:
            from openfema_client.console import console_confirm

            confirm = console_confirm
        gate = ConfirmationGate(confirm)
        if gate.decide(retrieval_plan) is GateState.DECLINED:
            raise RetrievalAbortedError(
                plan=retrieval_plan,
                result=empty_table(dataset.name, base.selected_fields, dataset.date_fields),
            )

        pages = PagedFetcher(client).fetch(
            base,
            retrieval_plan.page_count,
            total_records=total,
            progress_callback=progress_callback,
            plan=retrieval_plan,
        )
        return normalize(
            pages,
            dataset.name,
            page_size=page_size,
            expected_total=total,
            date_fields=dataset.date_fields,
            selected_fields=base.selected_fields,
        )
    finally:
        if owns_client:
            client.close()
