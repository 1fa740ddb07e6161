"""
Helper utilities for tests.
"""

import json
from collections.abc import Callable
from typing import Annotated, Any

import httpx
from pydantic import BaseModel, StringConstraints

from crudform.models import BlobData, Identifier
from crudform.validation import ValidationFailure, ValidationResult

type Handler = Callable[[httpx.Request], httpx.Response]


class Customer(BaseModel):
    id: int | None = None
    name: str = ""
    email: str = ""


class CustomerRules(BaseModel):
    name: Annotated[str, StringConstraints(min_length=1)]
    email: Annotated[str, StringConstraints(pattern=r"^[^@]+@[^@]+$")]


def customer_identifier(customer_id: int | None = None) -> Identifier[int]:
    return Identifier[int](model=customer_id)


def envelope(data: Any = None, status: Any = "Succeeded", **extra: Any) -> dict:
    return {"status": status, "data": data, **extra}


def text_blob(name: str = "notes.txt", content: bytes = b"hello", input_name: str = "attachment") -> BlobData:
    return BlobData.from_bytes(content, name, input_name=input_name)


class AsyncRulesValidator:
    """Async validator rejecting instances whose ``name`` is in ``rejected``."""

    def __init__(self, *rejected: str):
        self.rejected = set(rejected)

    async def validate(self, instance: Any) -> ValidationResult:
        name = getattr(instance, "name", None)
        if name in self.rejected:
            return ValidationResult([ValidationFailure("name", f"{name} is not allowed")])
        return ValidationResult()


class FakeBackend:
    """Records requests and answers them from a ``(method, path)`` routing table.

    Unrouted requests get a 404 failure envelope.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        *,
        status_code: int = 200,
        content: bytes | None = None,
        raises: Exception | None = None,
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if raises is not None:
                raise raises
            if content is not None:
                return httpx.Response(status_code, content=content)
            return httpx.Response(status_code, json=json_body)

        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json=envelope(status="Failed", message="Not found"))
        return handler(request)

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if (method is None or request.method == method)
            and (path is None or request.url.path == path)
        ]

    @staticmethod
    def json_of(request: httpx.Request) -> Any:
        return json.loads(request.content)
