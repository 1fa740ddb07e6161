"""Serialization helpers shared by the HTTP layer."""

import base64
from collections.abc import Mapping
from typing import Any

from pydantic_core import to_jsonable_python


def to_jsonable(content: Any) -> Any:
    """Convert request content into data ``httpx`` can encode as JSON.

    Pydantic models are dumped by alias, dataclasses become dictionaries and
    datetimes, enums and sets are converted the way pydantic serializes them.
    """
    return to_jsonable_python(content, by_alias=True)


def to_query_params(content: Any) -> list[tuple[str, str]]:
    """Flatten request content into query string pairs.

    ``None`` values are dropped, lists repeat the key and nested mappings use
    dotted keys (``filter.name=...``).
    """
    params: list[tuple[str, str]] = []

    def add(prefix: str, value: Any) -> None:
        match value:
            case None:
                return

            case Mapping():
                for key, item in value.items():
                    add(f"{prefix}.{key}" if prefix else str(key), item)

            case list():
                for item in value:
                    add(prefix, item)

            case bool():
                params.append((prefix, "true" if value else "false"))

            case _:
                params.append((prefix, str(value)))

    add("", to_jsonable(content))
    return params


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_base64(text: str | bytes) -> bytes:
    """Decode base64 text, tolerating surrounding whitespace and JSON quotes."""
    if isinstance(text, bytes):
        text = text.decode("ascii")

    return base64.b64decode(text.strip().strip('"'))
