import os
from dataclasses import dataclass
from datetime import datetime

import pytest

from crudform.models import BlobData, Identifier, Paged, RecordWithBlobChanges
from crudform.utils import decode_base64, encode_base64, to_jsonable, to_query_params
from tests.helpers import Customer


@dataclass
class Filter:
    name: str | None
    tags: list[str]
    active: bool


@pytest.mark.parametrize(
    "data",
    [b"", b"\x00", b"hello world", bytes(range(256)), os.urandom(1024), b"\xff" * 7],
)
def test_base64_round_trip(data):
    assert decode_base64(encode_base64(data)) == data


def test_decode_base64_tolerates_json_quotes():
    assert decode_base64('"aGVsbG8="\n') == b"hello"
    assert decode_base64(b"aGVsbG8=") == b"hello"


def test_to_jsonable():
    created = datetime(2024, 5, 1, 12, 30)

    assert to_jsonable(Customer(name="Jane")) == {"id": None, "name": "Jane", "email": ""}
    assert to_jsonable(Paged[int](page_index=2, data=5))["pageIndex"] == 2
    assert to_jsonable({"when": created}) == {"when": "2024-05-01T12:30:00"}


def test_to_query_params():
    params = to_query_params(
        {"filter": Filter(name=None, tags=["a", "b"], active=True), "page": 1}
    )

    assert params == [
        ("filter.tags", "a"),
        ("filter.tags", "b"),
        ("filter.active", "true"),
        ("page", "1"),
    ]


def test_identifier_query_params():
    assert to_query_params(Identifier[dict](model={"id": 4, "tenant": "acme"})) == [
        ("model.id", "4"),
        ("model.tenant", "acme"),
    ]


def test_blob_from_bytes():
    blob = BlobData.from_bytes(b"%PDF", "report.pdf", input_name="report")

    assert blob.size == 4
    assert blob.type == "application/pdf"
    assert blob.read() == b"%PDF"
    assert blob.read() == b"%PDF"


def test_blob_from_path(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"some notes")

    blob = BlobData.from_path(path)
    try:
        assert blob.name == "notes.txt"
        assert blob.input_name == "file"
        assert blob.size == 10
        assert blob.type == "text/plain"
        assert blob.read() == b"some notes"
    finally:
        blob.close()


def test_composite_from_named_items():
    composite = RecordWithBlobChanges[Customer].model_validate(
        {"item1": {"name": "Jane"}, "item2": [], "item3": [{"name": "old.txt"}]}
    )

    assert composite.record == Customer(name="Jane")
    assert composite.added_blobs == []
    assert composite.removed_blobs[0].name == "old.txt"
