import asyncio
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from duit_assistant.app import create_app
from duit_assistant.classifiers.llm import LLMClassifier
from duit_assistant.classifiers.memory import InMemoryMappingStore
from duit_assistant.manager import CategorizerService
from duit_assistant.models import Category, LearnedMapping
from duit_assistant.services.categorization import EntryPipeline


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=LLMClassifier)
    llm.available = True
    llm.model = "test-model"
    llm.base_url = None
    llm.classify = AsyncMock(return_value=Category.BILLS)
    return llm


@pytest.fixture
def app(store: InMemoryMappingStore, mock_llm: MagicMock) -> Generator[FastAPI, None, None]:
    # No context manager, so the lifespan never builds the real service.
    app = create_app()
    service = CategorizerService(store=store, llm=mock_llm)
    app.state.service = service
    app.state.pipeline = EntryPipeline(service=service)
    yield app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def test_parse(client: TestClient) -> None:
    response = client.post("/api/parse", json={"text": "kopi susu 25rb"})
    assert response.status_code == 200
    assert response.json() == {"description": "kopi susu", "amount": 25000}


def test_parse_without_amount_returns_null(client: TestClient) -> None:
    response = client.post("/api/parse", json={"text": "kopi susu"})
    assert response.status_code == 200
    assert response.json() is None


def test_categorize_local(client: TestClient, mock_llm: MagicMock) -> None:
    response = client.post("/api/categorize", json={"description": "bayar gojek"})
    assert response.status_code == 200
    assert response.json() == {"category": "transport"}
    mock_llm.classify.assert_not_called()


def test_categorize_remote_fallback(client: TestClient, mock_llm: MagicMock) -> None:
    response = client.post("/api/categorize", json={"description": "iuran rt"})
    assert response.json() == {"category": "bills"}
    mock_llm.classify.assert_awaited_once()


def test_categorize_remote_disabled_by_request(client: TestClient, mock_llm: MagicMock) -> None:
    response = client.post("/api/categorize", json={"description": "iuran rt", "use_remote": False})
    assert response.json() == {"category": "other"}
    mock_llm.classify.assert_not_called()


def test_entries(client: TestClient) -> None:
    response = client.post("/api/entries", json={"text": "sewa kos 1.5jt"})
    assert response.status_code == 200
    assert response.json() == {
        "description": "sewa kos",
        "amount": 1500000,
        "category": "bills",
    }


def test_entries_unparseable(client: TestClient) -> None:
    response = client.post("/api/entries", json={"text": "cuma deskripsi"})
    assert response.status_code == 422
    assert "amount" in response.json()["detail"]


def test_categories(client: TestClient) -> None:
    response = client.get("/api/categories")
    assert response.json() == [
        "food", "transport", "bills", "shopping", "entertainment", "income", "other",
    ]


def test_mapping_lifecycle(client: TestClient) -> None:
    response = client.put("/api/mappings/Iuran", json={"category": "bills"})
    assert response.status_code == 200
    assert response.json() == {"keyword": "iuran", "category": "bills", "count": 1}

    response = client.post("/api/categorize", json={"description": "iuran sampah", "use_remote": False})
    assert response.json() == {"category": "bills"}

    response = client.patch("/api/mappings/iuran", json={"category": "shopping"})
    assert response.status_code == 200
    assert response.json()["category"] == "shopping"

    assert client.get("/api/mappings").json() == [
        {"keyword": "iuran", "category": "shopping", "count": 1}
    ]

    assert client.delete("/api/mappings/iuran").json() == {"status": "deleted"}
    assert client.get("/api/mappings").json() == []


def test_mapping_errors(client: TestClient) -> None:
    assert client.put("/api/mappings/iuran", json={"category": "other"}).status_code == 422
    assert client.put("/api/mappings/iuran", json={"category": "travel"}).status_code == 422
    assert client.patch("/api/mappings/missing", json={"category": "food"}).status_code == 404
    assert client.delete("/api/mappings/missing").status_code == 404


def test_uninitialized_service_returns_500() -> None:
    client = TestClient(create_app())
    response = client.post("/api/parse", json={"text": "kopi 25rb"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Service not initialized"


class LoopRecordingStore(InMemoryMappingStore):
    """Records, per mutation, whether it ran on a thread with a running event loop."""

    def __init__(self) -> None:
        super().__init__()
        self.on_loop: dict[str, bool] = {}

    def _record(self, name: str) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.on_loop[name] = False
        else:
            self.on_loop[name] = True

    def update_category(self, keyword: str, category: Category) -> LearnedMapping | None:
        self._record("update_category")
        return super().update_category(keyword, category)

    def delete(self, keyword: str) -> bool:
        self._record("delete")
        return super().delete(keyword)


def test_mapping_writes_run_off_the_event_loop(mock_llm: MagicMock) -> None:
    store = LoopRecordingStore()
    store.upsert("iuran", Category.BILLS)
    app = create_app()
    service = CategorizerService(store=store, llm=mock_llm)
    app.state.service = service
    app.state.pipeline = EntryPipeline(service=service)
    client = TestClient(app)

    assert client.patch("/api/mappings/iuran", json={"category": "shopping"}).status_code == 200
    assert client.delete("/api/mappings/iuran").status_code == 200
    assert store.on_loop == {"update_category": False, "delete": False}
