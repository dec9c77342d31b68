"""
Paginated retrieval engine.

Modules:
    - catalog: Dataset registry and field metadata
    - query_builder: Filter/selection -> QueryDescriptor
    - probe: Record count probe
    - planner: Page count and duration estimate
    - confirmation: Confirmation gate for multi-page retrievals
    - pagination: Sequential page fetching
    - normalize: Result assembly and type normalization
    - retrieve: End-to-end retrieval
"""

from openfema_client.data.catalog import DatasetCatalog, DatasetMetadata, get_catalog
from openfema_client.data.confirmation import ConfirmationGate, GateState
from openfema_client.data.normalize import normalize
from openfema_client.data.pagination import PagedFetcher, PageInfo, reconcile_page
from openfema_client.data.planner import RetrievalPlan, plan
from openfema_client.data.probe import ProbeResult, probe
from openfema_client.data.query_builder import QueryBuilder, build_query
from openfema_client.data.retrieve import retrieve

__all__ = [
    # Catalog
    "DatasetCatalog",
    "DatasetMetadata",
    "get_catalog",
    # Planning
    "QueryBuilder",
    "build_query",
    "ProbeResult",
    "probe",
    "RetrievalPlan",
    "plan",
    "ConfirmationGate",
    "GateState",
    # Fetching
    "PagedFetcher",
    "PageInfo",
    "reconcile_page",
    "normalize",
    "retrieve",
]
