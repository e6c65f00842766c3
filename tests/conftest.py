import itertools
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from eldercare.api import create_app
from eldercare.client import CareApiClient
from eldercare.database import InMemoryKeyValueDatabase, JsonFileKeyValueDatabase
from eldercare.models import Role, User
from tests.helpers import make_user

# keep tests off any real backend configured in the environment
os.environ.setdefault("ELDERCARE_API_BASE_URL", "http://test")


@pytest.fixture
def backend():
    app = create_app()
    counter = itertools.count(1)
    app.state.id_fn = lambda: str(next(counter))
    return app


@pytest_asyncio.fixture
async def api_client(backend):
    async with AsyncClient(
        transport=ASGITransport(app=backend), base_url="http://test"
    ) as http:
        yield CareApiClient(http)


@pytest.fixture
def short_lived() -> InMemoryKeyValueDatabase[str, str]:
    return InMemoryKeyValueDatabase()


@pytest.fixture
def long_lived(tmp_path) -> JsonFileKeyValueDatabase:
    return JsonFileKeyValueDatabase(tmp_path / "session.json")


@pytest.fixture
def patient() -> User:
    return make_user(Role.PATIENT, id="patient-1", name="Maria Lopez")


@pytest.fixture
def caregiver() -> User:
    return make_user(Role.CAREGIVER, id="cg-7", name="Alice Ongwele")
