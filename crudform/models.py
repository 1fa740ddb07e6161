"""Data transfer types exchanged with the backend."""

import io
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")
TId = TypeVar("TId")


class ContractModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Identifier(ContractModel, Generic[TId]):
    """Wraps the key data needed to address a single record."""

    model: TId | None = None


class Paged(ContractModel, Generic[T]):
    """A page of records together with its paging metadata."""

    page_index: int = 0
    page_size: int = 0
    total_count: int = 0
    total_pages: int = 0
    has_previous_page: bool = False
    has_next_page: bool = False
    data: T | None = None


class UserBlob(ContractModel):
    """Metadata of a blob the backend stored for a record."""

    id: str | None = None
    name: str | None = None
    input_name: str | None = None
    size: int = 0
    type: str | None = None
    url: str | None = None
    last_modified: datetime | None = None


def _items_to_fields(value: Any, fields: tuple[str, ...]) -> Any:
    """Accept the composite as a JSON array or as an ``Item1``/``Item2`` object."""
    if isinstance(value, (list, tuple)):
        return dict(zip(fields, value))

    if isinstance(value, dict):
        items = {key.lower(): item for key, item in value.items()}
        if "item1" in items:
            return {
                field_name: items.get(f"item{index}")
                for index, field_name in enumerate(fields, start=1)
            }

    return value


class RecordWithBlobs(ContractModel, Generic[T]):
    """Reply of a create with attachments: the stored record and its blobs."""

    record: T | None = None
    blobs: list[UserBlob] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_items(cls, value: Any) -> Any:
        return _items_to_fields(value, ("record", "blobs"))


class RecordWithBlobChanges(ContractModel, Generic[T]):
    """Reply of an update with attachments: the record, added and removed blobs."""

    record: T | None = None
    added_blobs: list[UserBlob] = Field(default_factory=list)
    removed_blobs: list[UserBlob] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_items(cls, value: Any) -> Any:
        return _items_to_fields(value, ("record", "added_blobs", "removed_blobs"))


@dataclass
class BlobData:
    """A pending file attachment.

    Attributes:
        name: File name sent as the multipart filename
        input_name: Multipart field name the file is sent under
        size: Size of the file in bytes
        type: MIME type of the file
        data: Binary file-like object holding the content
        last_modified: Last modification time of the file
    """

    name: str
    input_name: str
    data: io.IOBase
    size: int = 0
    type: str | None = None
    last_modified: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        name: str,
        input_name: str = "file",
        type: str | None = None,
    ) -> "BlobData":
        return cls(
            name=name,
            input_name=input_name,
            data=io.BytesIO(content),
            size=len(content),
            type=type or _guess_type(name),
        )

    @classmethod
    def from_path(
        cls, path: str | Path, input_name: str = "file", type: str | None = None
    ) -> "BlobData":
        """Open ``path`` for reading. The handle is released by ``close()``, which a
        form calls itself when it discards the blob."""
        path = Path(path)
        stat = path.stat()
        return cls(
            name=path.name,
            input_name=input_name,
            data=path.open("rb"),
            size=stat.st_size,
            type=type or _guess_type(path.name),
            last_modified=datetime.fromtimestamp(stat.st_mtime),
        )

    def read(self) -> bytes:
        if self.data.seekable():
            self.data.seek(0)
        return self.data.read()

    def close(self) -> None:
        if not self.data.closed:
            self.data.close()

    @property
    def closed(self) -> bool:
        return self.data.closed


def _guess_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"
