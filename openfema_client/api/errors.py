# openfema_client/api/errors.py
"""
Error taxonomy for the OpenFEMA client.

Provides:
1. Error code constants for consistent error handling
2. Custom exception hierarchy for the different failure modes of a retrieval

Every exception surfaces to the caller of ``retrieve``. Nothing in the
engine retries silently or returns partial data.
"""

from typing import Any, Dict, List, Optional


# ============================================================================
# ERROR CODES
# ============================================================================


class ErrorCode:
    """Standard error codes for the OpenFEMA client."""

    # Client errors (bad input, raised before any network call)
    UNKNOWN_DATASET = "UNKNOWN_DATASET"
    INVALID_QUERY = "INVALID_QUERY"

    # Upstream/transport errors
    TRANSIENT_NETWORK = "TRANSIENT_NETWORK"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"

    # Retrieval lifecycle
    RETRIEVAL_ABORTED = "RETRIEVAL_ABORTED"
    RESULT_ASSEMBLY = "RESULT_ASSEMBLY"


# ============================================================================
# EXCEPTION HIERARCHY
# ============================================================================


class OpenFemaError(Exception):
    """Base exception for all OpenFEMA client errors."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.UPSTREAM_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a plain dictionary (CLI output, logging)."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnknownDatasetError(OpenFemaError):
    """Raised when a dataset name has no case-insensitive match in the catalog."""

    def __init__(self, dataset_id: str, suggestions: Optional[List[str]] = None):
        suggestions = suggestions or []
        message = f"Dataset '{dataset_id}' not found"
        if suggestions:
            message += f". Did you mean: {', '.join(suggestions)}?"
        super().__init__(
            message=message,
            code=ErrorCode.UNKNOWN_DATASET,
            details={"dataset_id": dataset_id, "suggestions": suggestions},
        )
        self.dataset_id = dataset_id
        self.suggestions = suggestions


class InvalidQueryError(OpenFemaError):
    """Raised when filters, field selections or top_n cannot form a valid query."""

    def __init__(self, param_name: str, param_value: Any, expected: str):
        super().__init__(
            message=f"Invalid {param_name}: got {param_value!r}, expected {expected}",
            code=ErrorCode.INVALID_QUERY,
            details={
                "param_name": param_name,
                "param_value": str(param_value),
                "expected": expected,
            },
        )


class TransientNetworkError(OpenFemaError):
    """Connectivity failure or timeout. Safe to retry the whole retrieval."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.TRANSIENT_NETWORK,
            details={"url": url},
        )
        self.url = url


class UpstreamError(OpenFemaError):
    """Non-2xx (or unusable) response from the probe or from any page."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        page_index: Optional[int] = None,
        upstream_message: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.UPSTREAM_ERROR,
            details={
                "status_code": status_code,
                "page_index": page_index,
                "upstream_message": upstream_message,
            },
        )
        self.status_code = status_code
        self.page_index = page_index
        self.upstream_message = upstream_message


class RetrievalAbortedError(OpenFemaError):
    """
    The caller declined the confirmation prompt.

    This is a user-initiated cancellation, not a fault. ``result`` holds the
    empty result table and ``plan`` the plan that was declined.
    """

    def __init__(self, plan: Any = None, result: Any = None):
        message = "Retrieval cancelled at confirmation prompt"
        if plan is not None:
            message += (
                f" ({plan.total_records} records in {plan.page_count} API calls)"
            )
        super().__init__(message=message, code=ErrorCode.RETRIEVAL_ABORTED)
        self.plan = plan
        self.result = result


class ResultAssemblyError(OpenFemaError):
    """Page row counts contradict the page-size contract (truncated transport)."""

    def __init__(self, message: str, page_index: Optional[int] = None):
        super().__init__(
            message=message,
            code=ErrorCode.RESULT_ASSEMBLY,
            details={"page_index": page_index},
        )
        self.page_index = page_index
