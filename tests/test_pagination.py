"""Unit tests for sequential page fetching and per-page reconciliation."""

import pytest

from openfema_client.api.errors import TransientNetworkError, UpstreamError
from openfema_client.api.models import PageResponse, QueryDescriptor
from openfema_client.data.pagination import PagedFetcher, reconcile_page


def _base(page_size: int = 1000) -> QueryDescriptor:
    return QueryDescriptor(dataset_id="FimaNfipClaims", version=2, page_size=page_size)


class TestReconcilePage:
    def test_rows_padded_to_page_key_set(self):
        page = reconcile_page([{"a": 1, "b": 2}, {"a": 3, "c": 4}])
        assert page == [{"a": 1, "b": 2, "c": None}, {"a": 3, "b": None, "c": 4}]
        assert [list(row) for row in page] == [["a", "b", "c"], ["a", "b", "c"]]

    def test_empty_page(self):
        assert reconcile_page([]) == []


class TestPagedFetcher:
    def test_offsets_advance_by_page_size(self, fake_openfema):
        api = fake_openfema(total=2500)
        pages = PagedFetcher(api).fetch(_base(), page_count=3, total_records=2500)

        assert [d.offset for d in api.requests] == [0, 1000, 2000]
        assert [d.top for d in api.requests] == [1000, 1000, 500]
        assert [len(p) for p in pages] == [1000, 1000, 500]

    def test_final_page_capped_by_total(self, fake_openfema):
        api = fake_openfema(total=5000)
        pages = PagedFetcher(api).fetch(_base(), page_count=3, total_records=2300)

        assert api.requests[-1].top == 300
        assert sum(len(p) for p in pages) == 2300

    def test_pages_returned_in_order(self, fake_openfema):
        api = fake_openfema(total=25)
        pages = PagedFetcher(api).fetch(_base(page_size=10), page_count=3, total_records=25)
        ids = [row["id"] for page in pages for row in page]
        assert ids == [f"row-{i}" for i in range(25)]

    def test_upstream_error_aborts_with_page_index(self, fake_openfema):
        api = fake_openfema(total=3000, fail_on_call=1, fail_status=500)
        with pytest.raises(UpstreamError) as exc_info:
            PagedFetcher(api).fetch(_base(), page_count=3, total_records=3000)

        error = exc_info.value
        assert error.page_index == 1
        assert error.status_code == 500
        assert error.upstream_message == "upstream is down"
        # No further pages after the failure
        assert len(api.requests) == 2

    def test_transient_error_propagates(self):
        class DroppingClient:
            def fetch_page(self, descriptor):
                raise TransientNetworkError("timed out")

        with pytest.raises(TransientNetworkError):
            PagedFetcher(DroppingClient()).fetch(_base(), page_count=2)

    def test_body_without_rows_is_upstream_error(self):
        class OddClient:
            def fetch_page(self, descriptor):
                return PageResponse(status_code=200, reason="OK", body="<html>maintenance</html>")

        with pytest.raises(UpstreamError):
            PagedFetcher(OddClient()).fetch(_base(), page_count=1)

    def test_progress_callback_receives_each_page(self, fake_openfema):
        seen = []
        api = fake_openfema(total=25)
        PagedFetcher(api).fetch(
            _base(page_size=10), page_count=3, total_records=25, progress_callback=seen.append
        )
        assert [(i.page_number, i.total_pages, i.offset, i.row_count) for i in seen] == [
            (1, 3, 0, 10),
            (2, 3, 10, 10),
            (3, 3, 20, 5),
        ]

    def test_failing_progress_callback_does_not_abort(self, fake_openfema):
        def broken(info):
            raise ValueError("display went away")

        pages = PagedFetcher(fake_openfema(total=5)).fetch(
            _base(page_size=10), page_count=1, progress_callback=broken
        )
        assert len(pages[0]) == 5
