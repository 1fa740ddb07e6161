"""JSON and multipart helpers over ``httpx.AsyncClient``.

Each helper comes in two flavours. The plain one (``post_json``,
``send_form_data``, ``download_blob_as_bytes``...) raises whatever ``httpx`` or
the response decoding raises. The ``*_result`` one never raises: it returns a
``ResponseResult`` holding either the decoded response or the captured exception.

Helpers taking a validator run it before anything is sent. A failed validation
returns a failed ``ApiResponse`` carrying the first error message and the whole
list, and no request is made.

Examples:
    ```python
    async with httpx.AsyncClient(base_url="https://api.example.com") as client:
        add_jwt_authorization_bearer_header(client, token)

        result = await send_validated_json_result(
            client, "POST", "/api/customers", customer, CustomerValidator(), Customer
        )
        if result.is_succeeded:
            customer = result.response.data
    ```
"""

import io
import json
import logging
from collections.abc import Awaitable, Iterable, Sequence
from functools import lru_cache
from typing import Any

import httpx
from pydantic import TypeAdapter

from crudform.http.result import ApiResponse, ResponseResult
from crudform.models import BlobData
from crudform.utils import decode_base64, encode_base64, to_jsonable, to_query_params
from crudform.validation import (
    ValidationFailure,
    ValidationResult,
    Validator,
    run_validator,
)

logger = logging.getLogger(__name__)

type FilePart = tuple[str, tuple[str | None, Any, str | None]]

EMPTY_CONTENT_MESSAGE = "FileIsNullOrEmpty"
DEFAULT_JSON_PART_NAME = "data"


@lru_cache(maxsize=256)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _decode(response: httpx.Response, response_type: Any) -> Any:
    """Decode a JSON response body into ``response_type``; ``None`` ignores the body."""
    if response_type is None:
        return None

    return _adapter(response_type).validate_json(response.content)


async def _capture[T](call: Awaitable[T], method: str, url: str) -> ResponseResult[T]:
    try:
        return ResponseResult.ok(await call)
    except Exception as e:
        logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
        return ResponseResult.from_exception(e)


def _is_get(method: str) -> bool:
    return method.upper() == "GET"


def _build_json_request(
    client: httpx.AsyncClient, method: str, url: str, content: Any = None
) -> httpx.Request:
    """GET requests carry the content in the query string, everything else as JSON."""
    if content is None:
        return client.build_request(method, url)

    if _is_get(method):
        return client.build_request(method, url, params=to_query_params(content))

    return client.build_request(method, url, json=to_jsonable(content))


async def _first_invalid(
    validator: Validator, instances: Iterable[Any]
) -> ValidationResult | None:
    for instance in instances:
        validation = await run_validator(validator, instance)
        if not validation.is_valid:
            return validation

    return None


def add_jwt_authorization_bearer_header(
    client: httpx.AsyncClient, token: str | None, add_bearer_scheme: bool = True
) -> None:
    """Replace the client's ``Authorization`` header. Blank tokens are ignored."""
    if not token or not token.strip():
        return

    client.headers["Authorization"] = f"Bearer {token}" if add_bearer_scheme else token


# --- JSON ---------------------------------------------------------------------


async def send_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    content: Any = None,
    *,
    response_type: Any = Any,
) -> Any:
    request = _build_json_request(client, method, url, content)
    logger.debug(f"Sending {request.method} {request.url}")
    response = await client.send(request)
    return _decode(response, response_type)


async def get_json(
    client: httpx.AsyncClient, url: str, params: Any = None, *, response_type: Any = Any
) -> Any:
    return await send_json(client, "GET", url, params, response_type=response_type)


async def post_json(
    client: httpx.AsyncClient, url: str, content: Any, *, response_type: Any = Any
) -> Any:
    return await send_json(client, "POST", url, content, response_type=response_type)


async def put_json(
    client: httpx.AsyncClient, url: str, content: Any, *, response_type: Any = Any
) -> Any:
    return await send_json(client, "PUT", url, content, response_type=response_type)


async def delete_json(
    client: httpx.AsyncClient, url: str, content: Any = None, *, response_type: Any = Any
) -> Any:
    return await send_json(client, "DELETE", url, content, response_type=response_type)


async def send_json_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    content: Any = None,
    *,
    response_type: Any = Any,
) -> ResponseResult:
    return await _capture(
        send_json(client, method, url, content, response_type=response_type), method, url
    )


async def get_json_result(
    client: httpx.AsyncClient, url: str, params: Any = None, *, response_type: Any = Any
) -> ResponseResult:
    return await send_json_result(client, "GET", url, params, response_type=response_type)


async def post_json_result(
    client: httpx.AsyncClient, url: str, content: Any, *, response_type: Any = Any
) -> ResponseResult:
    return await send_json_result(client, "POST", url, content, response_type=response_type)


async def put_json_result(
    client: httpx.AsyncClient, url: str, content: Any, *, response_type: Any = Any
) -> ResponseResult:
    return await send_json_result(client, "PUT", url, content, response_type=response_type)


async def delete_json_result(
    client: httpx.AsyncClient, url: str, content: Any = None, *, response_type: Any = Any
) -> ResponseResult:
    return await send_json_result(
        client, "DELETE", url, content, response_type=response_type
    )


async def send_validated_json_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    content: Any,
    validator: Validator,
    response_type: Any = Any,
) -> ResponseResult[ApiResponse]:
    """Validate ``content`` and send it, decoding the reply as ``ApiResponse[response_type]``."""
    validation = await run_validator(validator, content)
    if not validation.is_valid:
        logger.warning(
            f"{method} {url} not sent: {validation.first_error_message}"
        )
        return ResponseResult.invalid(validation)

    return await send_json_result(
        client, method, url, content, response_type=ApiResponse[response_type]
    )


async def send_validated_json_range_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    contents: Iterable[Any] | None,
    validator: Validator,
    response_type: Any = Any,
) -> ResponseResult[ApiResponse]:
    """Validate every item of ``contents`` and send them as one JSON array."""
    contents = list(contents or [])
    if not contents:
        return ResponseResult.ok(ApiResponse.failed(EMPTY_CONTENT_MESSAGE))

    validation = await _first_invalid(validator, contents)
    if validation is not None:
        logger.warning(
            f"{method} {url} not sent: {validation.first_error_message}"
        )
        return ResponseResult.invalid(validation)

    return await send_json_result(
        client, method, url, contents, response_type=ApiResponse[response_type]
    )


# --- Multipart ----------------------------------------------------------------


def blob_part(blob: BlobData) -> FilePart:
    """Build the multipart part for a blob: field name, filename, content, type."""
    if blob.data.seekable():
        blob.data.seek(0)

    return blob.input_name, (
        blob.name,
        blob.data,
        blob.type or "application/octet-stream",
    )


def json_part(content: Any, name: str = DEFAULT_JSON_PART_NAME) -> FilePart:
    return name, (
        None,
        json.dumps(to_jsonable(content)).encode("utf-8"),
        "application/json",
    )


async def send_form_data(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    files: Sequence[FilePart],
    *,
    params: Any = None,
    response_type: Any = Any,
) -> Any:
    """Send ``files`` as a multipart body and decode the JSON reply."""
    logger.debug(f"Sending {method} {url} with {len(files)} multipart part(s)")
    response = await client.request(method, url, files=list(files), params=params)
    return _decode(response, response_type)


async def send_form_data_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    files: Sequence[FilePart],
    *,
    params: Any = None,
    response_type: Any = Any,
) -> ResponseResult:
    return await _capture(
        send_form_data(
            client, method, url, files, params=params, response_type=response_type
        ),
        method,
        url,
    )


async def send_blob_data_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    blobs: Iterable[BlobData] | None,
    blob_validator: Validator,
    response_type: Any = Any,
) -> ResponseResult[ApiResponse]:
    """Upload ``blobs``, one part each, after validating every one of them.

    The first blob failing validation aborts the whole batch before anything is
    sent. The decoded reply becomes the ``data`` of a succeeded envelope.
    """
    blobs = list(blobs or [])
    validation = await _first_invalid(blob_validator, blobs)
    if validation is not None:
        logger.warning(
            f"{method} {url} not sent: {validation.first_error_message}"
        )
        return ResponseResult.invalid(validation)

    result = await send_form_data_result(
        client,
        method,
        url,
        [blob_part(blob) for blob in blobs],
        response_type=response_type,
    )
    if result.has_exception:
        return result

    return ResponseResult.ok(ApiResponse.succeeded(result.response))


async def send_json_with_form_data(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    content: Any,
    files: Sequence[FilePart],
    *,
    json_part_name: str = DEFAULT_JSON_PART_NAME,
    response_type: Any = Any,
) -> Any:
    """Send ``content`` alongside ``files`` in one multipart request.

    For GET the content travels in the query string, otherwise as a JSON part
    named ``json_part_name`` placed before the files.
    """
    if _is_get(method):
        return await send_form_data(
            client,
            method,
            url,
            files,
            params=to_query_params(content),
            response_type=response_type,
        )

    return await send_form_data(
        client,
        method,
        url,
        [json_part(content, json_part_name), *files],
        response_type=response_type,
    )


async def send_json_with_form_data_result(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    content: Any,
    validator: Validator,
    blobs: Iterable[BlobData] | None,
    blob_validator: Validator,
    response_type: Any = Any,
    *,
    json_part_name: str = DEFAULT_JSON_PART_NAME,
) -> ResponseResult[ApiResponse]:
    """Validate ``content`` and every blob, then send them together.

    The reply is decoded as ``ApiResponse[response_type]``.
    """
    validation = await run_validator(validator, content)
    if validation.is_valid:
        blobs = list(blobs or [])
        validation = await _first_invalid(blob_validator, blobs) or validation

    if not validation.is_valid:
        logger.warning(
            f"{method} {url} not sent: {validation.first_error_message}"
        )
        return ResponseResult.invalid(validation)

    return await _capture(
        send_json_with_form_data(
            client,
            method,
            url,
            content,
            [blob_part(blob) for blob in blobs],
            json_part_name=json_part_name,
            response_type=ApiResponse[response_type],
        ),
        method,
        url,
    )


# --- Downloads ----------------------------------------------------------------


async def _download(
    client: httpx.AsyncClient, method: str, url: str, content: Any
) -> httpx.Response:
    request = _build_json_request(client, method, url, content)
    logger.debug(f"Downloading {request.method} {request.url}")
    response = await client.send(request)
    response.raise_for_status()
    return response


async def download_blob_as_bytes(
    client: httpx.AsyncClient, url: str, content: Any = None, *, method: str = "GET"
) -> bytes:
    response = await _download(client, method, url, content)
    return response.content


async def download_blob_as_stream(
    client: httpx.AsyncClient, url: str, content: Any = None, *, method: str = "GET"
) -> io.BytesIO:
    response = await _download(client, method, url, content)
    return io.BytesIO(response.content)


async def download_blob_as_base64(
    client: httpx.AsyncClient, url: str, content: Any = None, *, method: str = "GET"
) -> str:
    response = await _download(client, method, url, content)
    return encode_base64(response.content)


async def download_base64_as_bytes(
    client: httpx.AsyncClient, url: str, content: Any = None, *, method: str = "GET"
) -> bytes:
    """Download a base64 encoded body and return the decoded bytes."""
    response = await _download(client, method, url, content)
    return decode_base64(response.text)


async def _validate_download_content(
    content: Any, validator: Validator | None
) -> ValidationResult | None:
    if validator is None:
        return None

    if content is None:
        return ValidationResult([ValidationFailure("content", EMPTY_CONTENT_MESSAGE)])

    if isinstance(content, (list, tuple)):
        if not content:
            return ValidationResult(
                [ValidationFailure("content", EMPTY_CONTENT_MESSAGE)]
            )
        return await _first_invalid(validator, content)

    validation = await run_validator(validator, content)
    return None if validation.is_valid else validation


async def _download_result(
    download,
    client: httpx.AsyncClient,
    url: str,
    content: Any,
    method: str,
    validator: Validator | None,
) -> ResponseResult:
    validation = await _validate_download_content(content, validator)
    if validation is not None:
        logger.warning(
            f"{method} {url} not sent: {validation.first_error_message}"
        )
        return ResponseResult.invalid(validation, envelope=False)

    return await _capture(download(client, url, content, method=method), method, url)


async def download_blob_as_bytes_result(
    client: httpx.AsyncClient,
    url: str,
    content: Any = None,
    *,
    method: str = "GET",
    validator: Validator | None = None,
) -> ResponseResult[bytes]:
    return await _download_result(
        download_blob_as_bytes, client, url, content, method, validator
    )


async def download_blob_as_stream_result(
    client: httpx.AsyncClient,
    url: str,
    content: Any = None,
    *,
    method: str = "GET",
    validator: Validator | None = None,
) -> ResponseResult[io.BytesIO]:
    return await _download_result(
        download_blob_as_stream, client, url, content, method, validator
    )


async def download_blob_as_base64_result(
    client: httpx.AsyncClient,
    url: str,
    content: Any = None,
    *,
    method: str = "GET",
    validator: Validator | None = None,
) -> ResponseResult[str]:
    return await _download_result(
        download_blob_as_base64, client, url, content, method, validator
    )


async def download_base64_as_bytes_result(
    client: httpx.AsyncClient,
    url: str,
    content: Any = None,
    *,
    method: str = "GET",
    validator: Validator | None = None,
) -> ResponseResult[bytes]:
    return await _download_result(
        download_base64_as_bytes, client, url, content, method, validator
    )
