import json

import pytest

from basespace_download.api.errors import DecodeError
from basespace_download.api.schemas import (
    ListingItem,
    decode_file_item,
    decode_name,
    decode_page,
    decode_response,
    decode_sample_item,
)
from tests.fakes import envelope


def test_decode_name():
    assert decode_name(envelope({"Name": "HiSeq run 7", "Id": "123"})) == "HiSeq run 7"


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[1, 2, 3]",
        b'"Response"',
        json.dumps({"Other": {}}).encode(),
        json.dumps({"Response": []}).encode(),
        envelope({}),
        envelope({"Name": 42}),
    ],
)
def test_decode_name_rejects_unexpected_shapes(body):
    with pytest.raises(DecodeError):
        decode_name(body)


def test_decode_response_keeps_body_for_diagnostics():
    with pytest.raises(DecodeError) as excinfo:
        decode_response(b'{"Error": "bad token"}')
    assert excinfo.value.body == b'{"Error": "bad token"}'


def test_decode_page_with_file_items():
    body = envelope(
        {
            "Items": [{"Id": "f1", "Name": "a.fastq.gz", "Size": 10}, {"Id": "f2", "Name": "b.fastq.gz", "Size": 2.0}],
            "TotalCount": 5,
            "DisplayedCount": 2,
        }
    )
    page = decode_page(body, decode_file_item)
    assert page.items == [ListingItem("f1", "a.fastq.gz", 10), ListingItem("f2", "b.fastq.gz", 2)]
    assert page.total_count == 5
    assert page.displayed_count == 2


def test_decode_page_missing_total_count():
    body = envelope({"Items": [], "DisplayedCount": 0})
    with pytest.raises(DecodeError, match="TotalCount"):
        decode_page(body, decode_sample_item)


def test_sample_items_have_no_size():
    item = decode_sample_item({"Id": "S1", "Name": "Sample One", "Size": 99})
    assert item.size is None


@pytest.mark.parametrize(
    "raw",
    [
        "f1",
        {"Name": "a", "Size": 1},
        {"Id": 7, "Name": "a", "Size": 1},
        {"Id": "f1", "Name": "a"},
        {"Id": "f1", "Name": "a", "Size": "10"},
        {"Id": "f1", "Name": "a", "Size": True},
        {"Id": "f1", "Name": "a", "Size": 1.5},
        {"Id": "f1", "Name": "a", "Size": -1},
    ],
)
def test_decode_file_item_rejects_bad_items(raw):
    with pytest.raises(DecodeError):
        decode_file_item(raw)
