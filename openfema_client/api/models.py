# openfema_client/api/models.py
"""
Request and response models shared by the HTTP client and the retrieval engine.

QueryDescriptor is the normalized, immutable description of one page request.
A retrieval derives a fresh descriptor per page from a single base descriptor,
so offsets always stay aligned to the page size.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from openfema_client.config import MAX_PAGE_SIZE


# ============================================================================
# QUERY DESCRIPTOR
# ============================================================================


class QueryDescriptor(BaseModel):
    """Normalized query for one page of an OpenFEMA dataset."""

    dataset_id: str = Field(..., description="Canonical dataset name, e.g. FimaNfipClaims")
    version: int = Field(1, ge=1, description="Dataset API version")
    selected_fields: Optional[Tuple[str, ...]] = Field(
        None, description="Fields for $select; None selects every field"
    )
    filter_expression: Optional[str] = Field(
        None, description="OData $filter expression with literals already escaped"
    )
    page_size: int = Field(MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(0, ge=0)
    limit: Optional[int] = Field(
        None, ge=1, description="Rows requested for this page when fewer than page_size"
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "dataset_id": "FimaNfipClaims",
                "version": 2,
                "selected_fields": ["countyCode", "yearOfLoss", "id"],
                "filter_expression": "countyCode eq '01001'",
                "page_size": 1000,
                "offset": 2000,
            }
        },
    )

    @model_validator(mode="after")
    def _check_alignment(self) -> "QueryDescriptor":
        if self.offset % self.page_size != 0:
            raise ValueError(
                f"offset {self.offset} is not a multiple of page_size {self.page_size}"
            )
        if self.limit is not None and self.limit > self.page_size:
            raise ValueError(f"limit {self.limit} exceeds page_size {self.page_size}")
        return self

    @property
    def path(self) -> str:
        """Dataset path relative to the API root."""
        return f"v{self.version}/{self.dataset_id}"

    @property
    def top(self) -> int:
        """Value sent as $top."""
        return self.limit if self.limit is not None else self.page_size

    @property
    def page_index(self) -> int:
        return self.offset // self.page_size

    def at_page(self, index: int, limit: Optional[int] = None) -> "QueryDescriptor":
        """Derive the descriptor for page ``index`` of the same query."""
        if index < 0:
            raise ValueError(f"page index must be >= 0, got {index}")
        return self.model_copy(update={"offset": index * self.page_size, "limit": limit})

    def to_params(self) -> Dict[str, Any]:
        """Serialize to OpenFEMA URL query parameters."""
        params: Dict[str, Any] = {
            "$top": self.top,
            "$skip": self.offset,
            "$inlinecount": "allpages",
        }
        if self.filter_expression:
            params["$filter"] = self.filter_expression
        if self.selected_fields:
            params["$select"] = ",".join(self.selected_fields)
        return params


# ============================================================================
# PAGE RESPONSE
# ============================================================================


RawPage = List[Dict[str, Any]]


@dataclass
class PageResponse:
    """Status and decoded body of one page request."""

    status_code: int
    reason: str
    body: Any
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def upstream_message(self) -> str:
        """Best-effort error text from the upstream body."""
        body = self.body
        if isinstance(body, dict):
            error = body.get("error") or body.get("message") or body.get("Message")
            if isinstance(error, dict):
                return str(error.get("message") or error)
            if error:
                return str(error)
        if isinstance(body, str) and body.strip():
            return body.strip()[:500]
        return self.reason

    def total_count(self) -> Optional[int]:
        """Total matching records reported in response metadata, if any."""
        if not isinstance(self.body, dict):
            return None
        metadata = self.body.get("metadata") or {}
        count = metadata.get("count")
        if count is None:
            return None
        try:
            return int(count)
        except (TypeError, ValueError):
            return None

    def rows(self, dataset_id: str) -> Optional[RawPage]:
        """
        Extract the row list from the body.

        OpenFEMA nests rows under a key named after the dataset; fall back to
        the first list-valued key when the casing differs.
        """
        if not isinstance(self.body, dict):
            return None
        target = dataset_id.lower()
        for key, value in self.body.items():
            if key.lower() == target and isinstance(value, list):
                return value
        for key, value in self.body.items():
            if key != "metadata" and isinstance(value, list):
                return value
        return None
