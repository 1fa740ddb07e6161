"""Validation primitives used before any request is sent.

A validator is any object with a ``validate(instance)`` method returning a
``ValidationResult``, either directly or as an awaitable. The HTTP helpers run
validators through ``run_validator`` so both flavours can be mixed freely.
"""

import os
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass, field
from inspect import isawaitable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

from crudform.models import BlobData
from crudform.utils import to_jsonable

MAX_BLOB_SIZE = 10 * 1024 * 1024  # 10 MB


def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):g}MB"
    if size >= 1024:
        return f"{size / 1024:g}KB"
    return f"{size} bytes"


@dataclass(frozen=True)
class ValidationFailure:
    property_name: str
    error_message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single instance."""

    errors: list[ValidationFailure] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_messages(self) -> list[str]:
        return [error.error_message for error in self.errors]

    @property
    def first_error_message(self) -> str | None:
        return self.errors[0].error_message if self.errors else None


@runtime_checkable
class Validator(Protocol):
    def validate(
        self, instance: Any
    ) -> ValidationResult | Awaitable[ValidationResult]: ...


async def run_validator(validator: Validator, instance: Any) -> ValidationResult:
    result = validator.validate(instance)
    if isawaitable(result):
        result = await result
    return result


class EmptyValidator:
    """Accepts everything."""

    def validate(self, instance: Any) -> ValidationResult:
        return ValidationResult()


class ModelValidator:
    """Validates instances against a pydantic model.

    Works for model instances, dataclasses and plain mappings alike: the instance
    is converted to JSON compatible data and validated with ``model_type``.

    Examples:
        ```python
        class CustomerRules(BaseModel):
            name: Annotated[str, StringConstraints(min_length=1)]
            email: EmailStr

        result = await run_validator(ModelValidator(CustomerRules), customer)
        ```
    """

    def __init__(self, model_type: type[BaseModel]):
        self.model_type = model_type

    def validate(self, instance: Any) -> ValidationResult:
        if isinstance(instance, BaseModel):
            data = instance.model_dump(mode="json")
        else:
            data = to_jsonable(instance)

        try:
            self.model_type.model_validate(data)
        except ValidationError as e:
            return ValidationResult(
                [
                    ValidationFailure(
                        ".".join(str(part) for part in error["loc"]), error["msg"]
                    )
                    for error in e.errors()
                ]
            )
        return ValidationResult()


class BlobDataValidator:
    """Checks a single attachment before it is uploaded."""

    def __init__(
        self,
        max_size: int = MAX_BLOB_SIZE,
        allowed_extensions: Iterable[str] | None = None,
        allowed_types: Iterable[str] | None = None,
    ):
        self.max_size = max_size
        self.allowed_extensions = (
            {ext.lower() for ext in allowed_extensions} if allowed_extensions else None
        )
        self.allowed_types = set(allowed_types) if allowed_types else None

    def validate(self, instance: BlobData) -> ValidationResult:
        errors: list[ValidationFailure] = []

        if instance.size and instance.size > self.max_size:
            errors.append(
                ValidationFailure(
                    "size",
                    f"File too large. Maximum size is {_format_size(self.max_size)}",
                )
            )

        if not instance.name:
            errors.append(ValidationFailure("name", "No filename provided"))
        elif ".." in instance.name or "/" in instance.name or "\\" in instance.name:
            errors.append(ValidationFailure("name", "Invalid filename"))
        elif self.allowed_extensions is not None:
            file_ext = os.path.splitext(instance.name.lower())[1]
            if file_ext not in self.allowed_extensions:
                errors.append(
                    ValidationFailure(
                        "name",
                        f"Invalid file type. Allowed: {', '.join(sorted(self.allowed_extensions))}",
                    )
                )

        if self.allowed_types is not None and instance.type not in self.allowed_types:
            errors.append(
                ValidationFailure(
                    "type",
                    f"Invalid MIME type. Allowed: {', '.join(sorted(self.allowed_types))}",
                )
            )

        if not instance.input_name:
            errors.append(ValidationFailure("input_name", "No input name provided"))

        return ValidationResult(errors)
