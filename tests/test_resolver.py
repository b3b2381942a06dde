import pytest

from basespace_download.api.errors import DecodeError, FetchError
from basespace_download.api.resolver import EntityKind, resolve_name
from tests.fakes import FakeClient, envelope


def test_resolves_sample_and_project_names():
    client = FakeClient(
        {
            "samples/S1": envelope({"Name": "Sample One"}),
            "projects/P1": envelope({"Name": "Project One"}),
        }
    )
    assert resolve_name(client, EntityKind.SAMPLE, "S1") == "Sample One"
    assert resolve_name(client, "projects", "P1") == "Project One"
    assert client.paths() == ["samples/S1", "projects/P1"]


def test_shape_mismatch_is_a_decode_error():
    client = FakeClient({"samples/S1": envelope({"Id": "S1"})})
    with pytest.raises(DecodeError):
        resolve_name(client, EntityKind.SAMPLE, "S1")


def test_fetch_errors_propagate():
    with pytest.raises(FetchError):
        resolve_name(FakeClient(), EntityKind.PROJECT, "missing")
