"""
HTTP layer for the OpenFEMA API.

Modules:
    - client: Synchronous httpx transport
    - errors: Exception hierarchy and error codes
    - models: Query descriptors and page responses
"""

from openfema_client.api.client import OpenFemaClient
from openfema_client.api.errors import (
    ErrorCode,
    InvalidQueryError,
    OpenFemaError,
    ResultAssemblyError,
    RetrievalAbortedError,
    TransientNetworkError,
    UnknownDatasetError,
    UpstreamError,
)
from openfema_client.api.models import PageResponse, QueryDescriptor, RawPage

__all__ = [
    "OpenFemaClient",
    "PageResponse",
    "QueryDescriptor",
    "RawPage",
    # Errors
    "ErrorCode",
    "OpenFemaError",
    "UnknownDatasetError",
    "InvalidQueryError",
    "TransientNetworkError",
    "UpstreamError",
    "RetrievalAbortedError",
    "ResultAssemblyError",
]
