"""OpenFEMA API client with paginated retrieval."""

from openfema_client.api import (
    InvalidQueryError,
    OpenFemaClient,
    OpenFemaError,
    ResultAssemblyError,
    RetrievalAbortedError,
    TransientNetworkError,
    UnknownDatasetError,
    UpstreamError,
)
from openfema_client.data import DatasetCatalog, PageInfo, RetrievalPlan, get_catalog, retrieve

__all__ = [
    "retrieve",
    "OpenFemaClient",
    "DatasetCatalog",
    "get_catalog",
    "RetrievalPlan",
    "PageInfo",
    "OpenFemaError",
    "UnknownDatasetError",
    "InvalidQueryError",
    "TransientNetworkError",
    "UpstreamError",
    "RetrievalAbortedError",
    "ResultAssemblyError",
]

__version__ = "0.1.0"
