"""Generic CRUD form scaffolding over a REST backend."""

from crudform.exceptions import (
    ApiResponseFailedError,
    CrudFormConfigError,
    CrudFormError,
    ResponseResultError,
)
from crudform.models import (
    BlobData,
    Identifier,
    Paged,
    RecordWithBlobChanges,
    RecordWithBlobs,
    UserBlob,
)
from crudform.validation import (
    BlobDataValidator,
    EmptyValidator,
    ModelValidator,
    ValidationFailure,
    ValidationResult,
    Validator,
)
from crudform.http import (
    ApiResponse,
    ApiResponseStatus,
    HttpCrudService,
    Outcome,
    ResponseResult,
    ServiceEndpoints,
)
from crudform.config import create_http_client, load_config
from crudform.forms import FormBase, FormState
from crudform.utils import decode_base64, encode_base64

__all__ = [
    "ApiResponse",
    "ApiResponseFailedError",
    "ApiResponseStatus",
    "BlobData",
    "BlobDataValidator",
    "CrudFormConfigError",
    "CrudFormError",
    "EmptyValidator",
    "FormBase",
    "FormState",
    "HttpCrudService",
    "Identifier",
    "ModelValidator",
    "Outcome",
    "Paged",
    "RecordWithBlobChanges",
    "RecordWithBlobs",
    "ResponseResult",
    "ResponseResultError",
    "ServiceEndpoints",
    "UserBlob",
    "ValidationFailure",
    "ValidationResult",
    "Validator",
    "create_http_client",
    "decode_base64",
    "encode_base64",
    "load_config",
]
