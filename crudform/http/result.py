"""Result types returned by the HTTP helpers.

Every helper in ``crudform.http.client`` returns a ``ResponseResult``. A result
either carries the decoded response or the exception that was raised while
sending the request or decoding its body, never both. Backend level failures are
reported inside the ``ApiResponse`` envelope and validation failures are reported
the same way, so callers can tell the channels apart:

```python
result = await send_validated_json_result(client, "POST", "/customers", customer, validator, Customer)
match result.outcome:
    case Outcome.SUCCEEDED:
        customer = result.response.data
    case Outcome.FAILED:
        show_errors(result.response.error_messages)
    case Outcome.EXCEPTION:
        logger.error("Request failed: %s", result.exception)
```
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import Field, field_validator

from crudform.exceptions import ApiResponseFailedError, ResponseResultError
from crudform.models import ContractModel
from crudform.validation import ValidationResult

T = TypeVar("T")


class ApiResponseStatus(Enum):
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    def succeeded(self) -> bool:
        return self is ApiResponseStatus.SUCCEEDED


class ApiResponse(ContractModel, Generic[T]):
    """The envelope the backend wraps every payload in."""

    status: ApiResponseStatus = ApiResponseStatus.FAILED
    data: T | None = None
    message: str | None = None
    error_messages: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> ApiResponseStatus:
        match value:
            case ApiResponseStatus():
                return value

            case bool():
                return ApiResponseStatus.SUCCEEDED if value else ApiResponseStatus.FAILED

            case 0:
                return ApiResponseStatus.SUCCEEDED

            case str() if value.strip().lower() in {"succeeded", "success", "ok"}:
                return ApiResponseStatus.SUCCEEDED

            case _:
                return ApiResponseStatus.FAILED

    @field_validator("error_messages", mode="before")
    @classmethod
    def _coerce_error_messages(cls, value: Any) -> list[str]:
        return [] if value is None else value

    @classmethod
    def succeeded(cls, data: Any = None, message: str | None = None) -> "ApiResponse":
        return cls(status=ApiResponseStatus.SUCCEEDED, data=data, message=message)

    @classmethod
    def failed(
        cls, message: str | None, error_messages: list[str] | None = None
    ) -> "ApiResponse":
        return cls(
            status=ApiResponseStatus.FAILED,
            message=message,
            error_messages=error_messages or [],
        )


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class ResponseResult(Generic[T]):
    """Outcome of a single HTTP helper call.

    Attributes:
        response: The decoded response, ``None`` when an exception was captured
        exception: The exception raised while sending or decoding, if any
        validation: Set when the call was short-circuited by a failed validation
    """

    response: T | None = None
    exception: BaseException | None = None
    validation: ValidationResult | None = None

    def __post_init__(self):
        if self.exception is not None and self.response is not None:
            raise ValueError("A ResponseResult cannot hold a response and an exception")

    @classmethod
    def ok(cls, response: T) -> "ResponseResult[T]":
        return cls(response=response)

    @classmethod
    def from_exception(cls, exception: BaseException) -> "ResponseResult[T]":
        return cls(exception=exception)

    @classmethod
    def invalid(
        cls, validation: ValidationResult, envelope: bool = True
    ) -> "ResponseResult[Any]":
        """Build the result of a call rejected by validation.

        With ``envelope`` the response is a failed ``ApiResponse`` carrying the
        first error message and the full list, otherwise the response is empty.
        """
        response = (
            ApiResponse.failed(validation.first_error_message, validation.error_messages)
            if envelope
            else None
        )
        return cls(response=response, validation=validation)

    @property
    def succeed(self) -> bool:
        """True when the call completed without raising."""
        return self.exception is None

    @property
    def has_exception(self) -> bool:
        return self.exception is not None

    @property
    def outcome(self) -> Outcome:
        if self.exception is not None:
            return Outcome.EXCEPTION

        if self.validation is not None and not self.validation.is_valid:
            return Outcome.FAILED

        if isinstance(self.response, ApiResponse) and not self.response.status.succeeded():
            return Outcome.FAILED

        return Outcome.SUCCEEDED

    @property
    def is_succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED

    def unwrap(self) -> T:
        """Return the response, raising when the call did not succeed."""
        match self.outcome:
            case Outcome.EXCEPTION:
                raise self.exception

            case Outcome.FAILED if isinstance(self.response, ApiResponse):
                raise ApiResponseFailedError(
                    self.response.message, self.response.error_messages
                )

            case Outcome.FAILED:
                raise ResponseResultError(
                    self.validation.first_error_message if self.validation else None
                )

        return self.response
