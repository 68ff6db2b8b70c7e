"""Tests for the HTTP API."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from task_search.exceptions import TaskStoreError
from task_search.llm import LLMGateway
from task_search.main import create_app


@pytest.fixture
def client(settings, task_store):
    app = create_app(settings, store=task_store, gateway=LLMGateway(settings, providers={}))
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["llm_providers"] == []

    def test_gateway_built_per_app_from_settings(self, settings, task_store):
        settings = settings.model_copy(update={"ollama_url": "http://localhost:11434"})
        first = create_app(settings, store=task_store)
        second = create_app(settings, store=task_store)

        with TestClient(first) as client_a, TestClient(second) as client_b:
            assert client_a.get("/health").json()["llm_providers"] == ["ollama"]
            assert client_b.get("/health").json()["llm_providers"] == ["ollama"]
            assert first.state.llm is not second.state.llm


class TestSearchEndpoint:

    def test_search(self, client):
        response = client.post(
            "/v1/tasks/search",
            json={"description": "login bug", "user_id": "user-1", "database_id": "db-1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 4
        assert data["results"][0]["page_id"] == "page-login"
        assert data["results"][0]["url"] == "https://www.notion.so/page-login"
        assert "page-archived" not in [r["page_id"] for r in data["results"]]
        assert data["enhanced_description"].startswith("login bug [Keywords: ")
        assert data["target_date"] is None
        assert data["metadata"]["store_calls"] == 1
        assert data["metadata"]["llm_calls"] == 0

    def test_search_with_date(self, client):
        response = client.post(
            "/v1/tasks/search",
            json={
                "description": "billing",
                "relative_date": "2025-03-30",
                "user_id": "user-1",
                "database_id": "db-1",
                "max_results": 1,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["target_date"].startswith("2025-03-30T00:00:00")
        assert len(data["results"]) == 1
        assert data["results"][0]["page_id"] == "page-tests"

    @pytest.mark.parametrize(
        "body",
        [
            {"description": "   ", "user_id": "user-1", "database_id": "db-1"},
            {"description": "login", "database_id": "db-1"},
            {"description": "login", "user_id": "user-1", "database_id": "db-1", "max_results": 0},
        ],
    )
    def test_invalid_body(self, client, body):
        response = client.post("/v1/tasks/search", json=body)
        assert response.status_code == 400

    def test_blank_user_id(self, client):
        response = client.post(
            "/v1/tasks/search",
            json={"description": "login", "user_id": "  ", "database_id": "db-1"},
        )
        assert response.status_code == 400
        assert "user_id" in response.json()["detail"]

    def test_store_failure(self, settings):
        store = AsyncMock()
        store.get_database_pages = AsyncMock(side_effect=TaskStoreError("Notion API error 503"))
        app = create_app(settings, store=store, gateway=LLMGateway(settings, providers={}))

        with TestClient(app) as client:
            response = client.post(
                "/v1/tasks/search",
                json={"description": "login", "user_id": "user-1", "database_id": "db-1"},
            )

        assert response.status_code == 502
        assert "Notion API error 503" in response.json()["detail"]


class TestStats:

    def test_stats(self, client):
        response = client.get("/v1/stats")

        assert response.status_code == 200
        assert response.json()["total_requests"] == 0
