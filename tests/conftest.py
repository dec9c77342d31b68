"""Shared fixtures: a scripted OpenFEMA stand-in and a fresh catalog."""

from typing import Any, Callable, Dict, List, Optional

import pytest

from openfema_client.api.models import PageResponse, QueryDescriptor
from openfema_client.data.catalog import DatasetCatalog


def default_row(index: int) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": f"row-{index}",
        "countyCode": "01001",
        "yearOfLoss": 2010 + index % 10,
        "dateOfLoss": "2021-07-25T00:00:00.000Z",
    }
    # OpenFEMA drops null-valued fields, so key sets vary between rows
    if index % 3 == 0:
        row["amountPaidOnBuildingClaim"] = 1250.5
    return row


class FakeOpenFema:
    """
    In-memory stand-in for OpenFemaClient.

    Serves ``total`` generated rows (or an explicit row list), honouring
    $top/$skip, and records every descriptor it receives.
    """

    def __init__(
        self,
        total: int = 0,
        rows: Optional[List[Dict[str, Any]]] = None,
        make_row: Callable[[int], Dict[str, Any]] = default_row,
        fail_on_call: Optional[int] = None,
        fail_status: int = 503,
    ):
        self.rows = rows
        self.total = len(rows) if rows is not None else total
        self.make_row = make_row
        self.fail_on_call = fail_on_call
        self.fail_status = fail_status
        self.requests: List[QueryDescriptor] = []

    def fetch_page(self, descriptor: QueryDescriptor) -> PageResponse:
        call_index = len(self.requests)
        self.requests.append(descriptor)
        if self.fail_on_call is not None and call_index == self.fail_on_call:
            return PageResponse(
                status_code=self.fail_status,
                reason="Service Unavailable",
                body={"error": {"message": "upstream is down"}},
            )

        stop = min(descriptor.offset + descriptor.top, self.total)
        indexes = range(descriptor.offset, max(stop, descriptor.offset))
        if self.rows is not None:
            page = [dict(self.rows[i]) for i in indexes]
        else:
            page = [self.make_row(i) for i in indexes]
        if descriptor.selected_fields:
            page = [
                {k: v for k, v in row.items() if k in descriptor.selected_fields}
                for row in page
            ]
        return PageResponse(
            status_code=200,
            reason="OK",
            body={"metadata": {"count": self.total}, descriptor.dataset_id: page},
        )

    @property
    def data_requests(self) -> List[QueryDescriptor]:
        """Requests other than the 1-row count probe."""
        return [d for d in self.requests if d.page_size != 1 or d.selected_fields != ("id",)]


class RecordingConfirm:
    """Scripted confirm callback that remembers the plans it was shown."""

    def __init__(self, answer: Any):
        self.answer = answer
        self.plans = []

    def __call__(self, plan) -> Any:
        self.plans.append(plan)
        return self.answer


@pytest.fixture
def catalog() -> DatasetCatalog:
    return DatasetCatalog()


@pytest.fixture
def fake_openfema():
    """Factory for FakeOpenFema instances."""
    return FakeOpenFema


@pytest.fixture
def recording_confirm():
    """Factory for RecordingConfirm callbacks."""
    return RecordingConfirm
