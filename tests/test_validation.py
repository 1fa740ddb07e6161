from dataclasses import dataclass

import pytest

from crudform.models import BlobData
from crudform.validation import (
    BlobDataValidator,
    EmptyValidator,
    ModelValidator,
    Validator,
    run_validator,
)
from tests.helpers import AsyncRulesValidator, Customer, CustomerRules, text_blob


@dataclass
class CustomerDraft:
    name: str
    email: str


@pytest.mark.asyncio
async def test_empty_validator_accepts_anything():
    result = await run_validator(EmptyValidator(), object())
    assert result.is_valid
    assert result.first_error_message is None


@pytest.mark.asyncio
async def test_model_validator_reports_each_failure():
    result = await run_validator(ModelValidator(CustomerRules), Customer(name="", email="jane"))

    assert not result.is_valid
    assert [error.property_name for error in result.errors] == ["name", "email"]
    assert result.first_error_message == result.error_messages[0]


@pytest.mark.asyncio
async def test_model_validator_accepts_dataclasses_and_mappings():
    validator = ModelValidator(CustomerRules)

    assert (await run_validator(validator, CustomerDraft("Jane", "jane@example.com"))).is_valid
    assert (await run_validator(validator, {"name": "Jane", "email": "jane@example.com"})).is_valid
    assert not (await run_validator(validator, {"name": "Jane"})).is_valid


@pytest.mark.asyncio
async def test_async_validator():
    validator = AsyncRulesValidator("Mallory")

    assert isinstance(validator, Validator)
    assert (await run_validator(validator, Customer(name="Jane"))).is_valid
    assert not (await run_validator(validator, Customer(name="Mallory"))).is_valid


def test_blob_validator_accepts_valid_blob():
    validator = BlobDataValidator(allowed_extensions={".TXT"}, allowed_types={"text/plain"})
    assert validator.validate(text_blob("notes.txt")).is_valid


@pytest.mark.parametrize(
    "blob, message",
    [
        (BlobData.from_bytes(b"x" * 2048, "big.txt"), "File too large. Maximum size is 1KB"),
        (BlobData.from_bytes(b"x", ""), "No filename provided"),
        (BlobData.from_bytes(b"x", "../etc/passwd"), "Invalid filename"),
        (BlobData.from_bytes(b"x", "dir\\notes.txt"), "Invalid filename"),
        (BlobData.from_bytes(b"x", "notes.txt", input_name=""), "No input name provided"),
    ],
)
def test_blob_validator_rejections(blob, message):
    result = BlobDataValidator(max_size=1024).validate(blob)
    assert not result.is_valid
    assert result.first_error_message == message


def test_blob_validator_extension_and_type():
    validator = BlobDataValidator(allowed_extensions={".pdf"}, allowed_types={"application/pdf"})

    result = validator.validate(text_blob("notes.txt"))

    assert result.error_messages == [
        "Invalid file type. Allowed: .pdf",
        "Invalid MIME type. Allowed: application/pdf",
    ]


@pytest.mark.parametrize(
    "max_size, shown",
    [(500, "500 bytes"), (1536, "1.5KB"), (10 * 1024 * 1024, "10MB")],
)
def test_blob_validator_size_message_units(max_size, shown):
    blob = BlobData.from_bytes(b"x" * (max_size + 1), "big.txt")

    result = BlobDataValidator(max_size=max_size).validate(blob)

    assert result.first_error_message == f"File too large. Maximum size is {shown}"
