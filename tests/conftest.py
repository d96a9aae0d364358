"""Pytest fixtures for the catalog store, source, service and state holder."""

import pytest

from peripheral_catalog.catalog.service import CatalogService
from peripheral_catalog.catalog.state_holder import CatalogStateHolder
from peripheral_catalog.database.catalog_store import CatalogStore
from peripheral_catalog.integrations.clients.mocks.local_peripheral_catalogue import LocalPeripheralCatalogue
from peripheral_catalog.integrations.clients.real_http.peripheral_api import PeripheralApiClient
from peripheral_catalog.integrations.contracts import Peripheral

BASE_URL = "https://peripheral.mock/"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def advance(self, ms: int = 1000) -> int:
        self.now += ms
        return self.now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def make_peripheral():
    def _make(id, name=None, price=100.0, **kwargs):
        kwargs.setdefault("brand", "Acme")
        kwargs.setdefault("category", "Mouse")
        return Peripheral(id=id, name=name or id, price=price, **kwargs)

    return _make


@pytest.fixture
def store():
    """In-memory CatalogStore for tests."""
    return CatalogStore()


@pytest.fixture
def catalogue():
    """Mock catalogue serving the bundled JSON data."""
    return LocalPeripheralCatalogue()


@pytest.fixture
def source(catalogue):
    return PeripheralApiClient(base_url=BASE_URL, transport=catalogue.transport())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(source, store, clock):
    return CatalogService(source=source, store=store, clock=clock)


@pytest.fixture
def holder(service):
    """State holder that has not been started; tests start and stop it."""
    return CatalogStateHolder(service)
