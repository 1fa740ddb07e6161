import httpx
import pytest
import pytest_asyncio

from crudform.http.service import HttpCrudService, ServiceEndpoints
from crudform.validation import BlobDataValidator
from tests.helpers import Customer, FakeBackend


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def client(backend: FakeBackend) -> httpx.AsyncClient:
    transport = httpx.MockTransport(backend.handle)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def endpoints() -> ServiceEndpoints:
    return ServiceEndpoints.for_resource("/api/customers")


@pytest.fixture
def service(client: httpx.AsyncClient, endpoints: ServiceEndpoints) -> HttpCrudService:
    return HttpCrudService(
        client,
        Customer,
        endpoints,
        blob_validator=BlobDataValidator(allowed_extensions={".txt", ".pdf"}),
    )
