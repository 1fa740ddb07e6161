"""HTTP layer for crudform - JSON/multipart helpers, results and the CRUD service."""

from .result import ApiResponse, ApiResponseStatus, Outcome, ResponseResult
from .client import (
    add_jwt_authorization_bearer_header,
    delete_json_result,
    download_base64_as_bytes_result,
    download_blob_as_base64_result,
    download_blob_as_bytes_result,
    download_blob_as_stream_result,
    get_json_result,
    post_json_result,
    put_json_result,
    send_blob_data_result,
    send_form_data_result,
    send_json_result,
    send_json_with_form_data_result,
    send_validated_json_range_result,
    send_validated_json_result,
)
from .service import HttpCrudService, ServiceEndpoints

__all__ = [
    "ApiResponse",
    "ApiResponseStatus",
    "Outcome",
    "ResponseResult",
    "add_jwt_authorization_bearer_header",
    "delete_json_result",
    "download_base64_as_bytes_result",
    "download_blob_as_base64_result",
    "download_blob_as_bytes_result",
    "download_blob_as_stream_result",
    "get_json_result",
    "post_json_result",
    "put_json_result",
    "send_blob_data_result",
    "send_form_data_result",
    "send_json_result",
    "send_json_with_form_data_result",
    "send_validated_json_range_result",
    "send_validated_json_result",
    "HttpCrudService",
    "ServiceEndpoints",
]
