import math
import threading

import pytest

from basespace_download.api.errors import DecodeError, DownloadCancelled
from basespace_download.api.paginator import (
    PageCursor,
    list_project_samples,
    list_sample_files,
    paginate,
)
from basespace_download.api.schemas import ListingPage, decode_sample_item
from tests.fakes import FakeClient, envelope, listing_route


def _samples(n):
    return [{"Id": f"S{i}", "Name": f"sample-{i}"} for i in range(n)]


@pytest.mark.parametrize("total,page_size", [(10, 3), (9, 3), (1, 5), (7, 1)])
def test_emits_every_item_in_order(total, page_size):
    raw = _samples(total)
    client = FakeClient({"projects/P1/samples": listing_route(raw, page_size)})

    items = list(list_project_samples(client, "P1"))

    assert [item.id for item in items] == [entry["Id"] for entry in raw]
    assert len(client.requests) == math.ceil(total / page_size)
    offsets = [params["Offset"] for _, params in client.requests]
    assert offsets == list(range(0, total, page_size))


def test_empty_listing_stops_after_first_page():
    client = FakeClient({"samples/S1/files": listing_route([], page_size=10)})
    assert list(list_sample_files(client, "S1")) == []
    assert len(client.requests) == 1


def test_listing_is_lazy():
    client = FakeClient({"projects/P1/samples": listing_route(_samples(4), 2)})
    items = list_project_samples(client, "P1")
    assert client.requests == []
    next(items)
    assert len(client.requests) == 1


def test_fresh_call_restarts_from_zero():
    client = FakeClient({"projects/P1/samples": listing_route(_samples(3), 2)})
    list(list_project_samples(client, "P1"))
    list(list_project_samples(client, "P1"))
    offsets = [params["Offset"] for _, params in client.requests]
    assert offsets == [0, 2, 0, 2]


def test_first_total_count_is_authoritative():
    pages = {
        0: envelope({"Items": _samples(2), "TotalCount": 4, "DisplayedCount": 2}),
        2: envelope({"Items": _samples(4)[2:], "TotalCount": 100, "DisplayedCount": 2}),
    }
    client = FakeClient({"projects/P1/samples": lambda params: pages[params["Offset"]]})
    assert len(list(list_project_samples(client, "P1"))) == 4
    assert len(client.requests) == 2


def test_stalled_page_fails_instead_of_looping():
    stalled = envelope({"Items": [], "TotalCount": 3, "DisplayedCount": 0})
    client = FakeClient({"projects/P1/samples": stalled})
    with pytest.raises(DecodeError, match="empty page"):
        list(list_project_samples(client, "P1"))
    assert len(client.requests) == 1


def test_limit_is_sent_when_configured():
    client = FakeClient({"projects/P1/samples": listing_route(_samples(2), 2)})
    list(paginate(client, "projects/{id}/samples", "P1", decode_sample_item, limit=1024))
    assert client.requests == [("projects/P1/samples", {"Offset": 0, "Limit": 1024})]


def test_cancelled_before_first_request():
    cancel = threading.Event()
    cancel.set()
    client = FakeClient({"projects/P1/samples": listing_route(_samples(2), 2)})
    with pytest.raises(DownloadCancelled):
        list(list_project_samples(client, "P1", cancel=cancel))
    assert client.requests == []


def test_cursor_advances_and_terminates():
    cursor = PageCursor()
    assert not cursor.exhausted
    cursor.advance(ListingPage(items=[], total_count=5, displayed_count=3))
    assert (cursor.offset, cursor.total_count, cursor.page_size) == (3, 5, 3)
    assert not cursor.exhausted
    cursor.advance(ListingPage(items=[], total_count=5, displayed_count=2))
    assert cursor.exhausted
