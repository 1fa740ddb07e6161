"""CRUD service talking to one backend resource."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, fields
from typing import Any, Self

import httpx

from crudform.config import ResourceConfig, import_from_string
from crudform.http import client as http
from crudform.http.result import ApiResponse, ResponseResult
from crudform.models import (
    BlobData,
    Identifier,
    Paged,
    RecordWithBlobChanges,
    RecordWithBlobs,
)
from crudform.validation import BlobDataValidator, EmptyValidator, Validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceEndpoints:
    """Relative URLs of a resource's endpoints."""

    get_one: str
    add: str
    update: str
    delete: str
    get_paged: str | None = None
    add_with_blobs: str | None = None
    update_with_blobs: str | None = None
    download: str | None = None

    @classmethod
    def for_resource(cls, base: str) -> Self:
        """Conventional endpoints below ``base``, e.g. ``/api/customers``."""
        base = base.rstrip("/")
        return cls(
            get_one=f"{base}/one",
            add=base,
            update=base,
            delete=base,
            get_paged=f"{base}/paged",
            add_with_blobs=f"{base}/with-blobs",
            update_with_blobs=f"{base}/with-blobs",
            download=f"{base}/download",
        )

    @classmethod
    def from_config(cls, resource_config: ResourceConfig) -> Self:
        names = {field.name for field in fields(cls)}
        return cls(**{k: v for k, v in resource_config.items() if k in names})


class HttpCrudService[T, TIdentifier: Identifier]:
    """Sends the CRUD requests of a form to the backend.

    Every method returns a ``ResponseResult`` wrapping the backend's
    ``ApiResponse`` envelope, decoded with ``record_type`` as the payload type.

    Examples:
        ```python
        service = HttpCrudService(
            client,
            Customer,
            ServiceEndpoints.for_resource("/api/customers"),
            blob_validator=BlobDataValidator(allowed_extensions={".pdf"}),
        )
        result = await service.get_one(Identifier[int](model=42), EmptyValidator())
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        record_type: type[T],
        endpoints: ServiceEndpoints,
        *,
        blob_validator: Validator | None = None,
        json_part_name: str = http.DEFAULT_JSON_PART_NAME,
    ):
        self.client = client
        self.record_type = record_type
        self.endpoints = endpoints
        self.blob_validator = blob_validator or BlobDataValidator()
        self.json_part_name = json_part_name

    @classmethod
    def from_config(
        cls,
        client: httpx.AsyncClient,
        resource_config: ResourceConfig,
        record_type: type[T],
    ) -> Self:
        """Build a service from a ``resources.<name>`` config section."""
        blob_validator = None
        if validator_path := resource_config.get("blob_validator"):
            blob_validator = import_from_string(validator_path)()

        return cls(
            client,
            record_type,
            ServiceEndpoints.from_config(resource_config),
            blob_validator=blob_validator,
            json_part_name=resource_config.get(
                "json_part_name", http.DEFAULT_JSON_PART_NAME
            ),
        )

    def _require(self, name: str) -> str:
        url = getattr(self.endpoints, name)
        if url is None:
            raise ValueError(f"No '{name}' endpoint configured for {self.record_type.__name__}")
        return url

    async def get_one(
        self, identifier: TIdentifier, validator: Validator | None = None
    ) -> ResponseResult[ApiResponse[T]]:
        return await http.send_validated_json_result(
            self.client,
            "GET",
            self.endpoints.get_one,
            identifier,
            validator or EmptyValidator(),
            self.record_type,
        )

    async def get_paged(
        self, query: Any = None, validator: Validator | None = None
    ) -> ResponseResult[ApiResponse[Paged[list[T]]]]:
        return await http.send_validated_json_result(
            self.client,
            "GET",
            self._require("get_paged"),
            query,
            validator or EmptyValidator(),
            Paged[list[self.record_type]],
        )

    async def add(
        self, record: T, validator: Validator | None = None
    ) -> ResponseResult[ApiResponse[T]]:
        return await http.send_validated_json_result(
            self.client,
            "POST",
            self.endpoints.add,
            record,
            validator or EmptyValidator(),
            self.record_type,
        )

    async def update(
        self, record: T, validator: Validator | None = None
    ) -> ResponseResult[ApiResponse[T]]:
        return await http.send_validated_json_result(
            self.client,
            "PUT",
            self.endpoints.update,
            record,
            validator or EmptyValidator(),
            self.record_type,
        )

    async def delete(
        self, identifier: TIdentifier, validator: Validator | None = None
    ) -> ResponseResult[ApiResponse[T]]:
        return await http.send_validated_json_result(
            self.client,
            "DELETE",
            self.endpoints.delete,
            identifier,
            validator or EmptyValidator(),
            self.record_type,
        )

    async def add_with_blobs(
        self,
        record: T,
        validator: Validator | None,
        blobs: Iterable[BlobData],
        *,
        blob_validator: Validator | None = None,
    ) -> ResponseResult[ApiResponse[RecordWithBlobs[T]]]:
        return await http.send_json_with_form_data_result(
            self.client,
            "POST",
            self._require("add_with_blobs"),
            record,
            validator or EmptyValidator(),
            blobs,
            blob_validator or self.blob_validator,
            RecordWithBlobs[self.record_type],
            json_part_name=self.json_part_name,
        )

    async def update_with_blobs(
        self,
        record: T,
        validator: Validator | None,
        blobs: Iterable[BlobData],
        *,
        blob_validator: Validator | None = None,
    ) -> ResponseResult[ApiResponse[RecordWithBlobChanges[T]]]:
        return await http.send_json_with_form_data_result(
            self.client,
            "PUT",
            self._require("update_with_blobs"),
            record,
            validator or EmptyValidator(),
            blobs,
            blob_validator or self.blob_validator,
            RecordWithBlobChanges[self.record_type],
            json_part_name=self.json_part_name,
        )

    async def download(
        self, identifier: TIdentifier, validator: Validator | None = None
    ) -> ResponseResult[bytes]:
        return await http.download_blob_as_bytes_result(
            self.client,
            self._require("download"),
            identifier,
            validator=validator,
        )
