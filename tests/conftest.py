from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from api import BookRepository
from inventory import InventoryStore
from server import CatalogState, app, get_state

CATALOG_URL = "http://testserver/api/books"


@pytest.fixture
def catalog() -> Iterator[CatalogState]:
    state = CatalogState()
    app.dependency_overrides[get_state] = lambda: state
    yield state
    app.dependency_overrides.pop(get_state, None)


@pytest.fixture
def client(catalog: CatalogState) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def repository(client: TestClient) -> BookRepository:
    return BookRepository(CATALOG_URL, session=client)


@pytest.fixture
def store(repository: BookRepository) -> InventoryStore:
    return InventoryStore(repository)
