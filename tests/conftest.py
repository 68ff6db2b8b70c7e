"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep real credentials out of the test run
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("ANTHROPIC_API_KEY", None)
os.environ.pop("OLLAMA_URL", None)
os.environ.pop("NOTION_API_KEY", None)

REFERENCE_TIME = datetime(2025, 3, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Get test settings."""
    from task_search.config import Settings
    return Settings(
        _env_file=None,
        llm_timeout_seconds=0.5,
        log_format="console",
    )


@pytest.fixture
def reference_time() -> datetime:
    return REFERENCE_TIME


@pytest.fixture
def templates():
    from task_search.prompts import PromptTemplateManager
    return PromptTemplateManager()


# =============================================================================
# Mock fixtures for external services
# =============================================================================


class MockLLMGateway:
    """Mock LLM gateway that answers by prompt kind.

    ``responses`` maps a substring of the prompt to either a response string
    or an exception instance to raise.
    """

    def __init__(self, responses: dict | None = None, delay: float = 0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[list[dict]] = []

    async def generate(
        self,
        messages: list[dict],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **kwargs,
    ) -> str:
        import asyncio

        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)

        prompt = messages[-1]["content"]
        for marker, response in self.responses.items():
            if marker in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        return "This is a mock response for testing."

    @property
    def is_configured(self) -> bool:
        return True

    @property
    def available_providers(self) -> list[str]:
        return ["mock"]

    def get_usage_stats(self) -> dict:
        return {"total_requests": len(self.calls)}

    async def health_check(self) -> dict:
        return {"mock": True}

    async def close(self) -> None:
        pass


DATE_PROMPT = "date interpretation specialist"
SEMANTIC_PROMPT = "intelligent task search assistant"
RANKING_PROMPT = "result ranking specialist"


@pytest.fixture
def mock_llm_gateway():
    """Get mock LLM gateway."""
    return MockLLMGateway()


@pytest.fixture
def analyzer(mock_llm_gateway, templates, settings):
    from task_search.llm import LanguageAnalyzer
    return LanguageAnalyzer(mock_llm_gateway, templates=templates, settings=settings)


def make_page(
    page_id: str,
    title: str,
    created_time: datetime | None = REFERENCE_TIME,
    archived: bool = False,
    status: str | None = None,
    notes: str | None = None,
):
    from task_search.models import TaskPage

    properties = {
        "Name": {"type": "title", "title": [{"plain_text": title}]},
    }
    if status is not None:
        properties["Status"] = {"type": "status", "status": {"name": status}}
    if notes is not None:
        properties["Notes"] = {"type": "rich_text", "rich_text": [{"plain_text": notes}]}

    return TaskPage(
        id=page_id,
        title=title,
        url=f"https://www.notion.so/{page_id}",
        created_time=created_time,
        archived=archived,
        properties=properties,
    )


@pytest.fixture
def sample_pages():
    return [
        make_page(
            "page-login",
            "Fix login bug on mobile",
            created_time=REFERENCE_TIME - timedelta(days=3),
            status="In progress",
            notes="Users cannot log in after password reset",
        ),
        make_page(
            "page-dashboard",
            "Implement dashboard feature",
            created_time=REFERENCE_TIME - timedelta(days=30),
            status="Done",
        ),
        make_page(
            "page-tests",
            "Write integration tests for billing",
            created_time=REFERENCE_TIME - timedelta(days=1),
            status="Not started",
        ),
        make_page(
            "page-archived",
            "Old login bug",
            created_time=REFERENCE_TIME - timedelta(days=3),
            archived=True,
            status="Done",
        ),
    ]


@pytest.fixture
def task_store(sample_pages):
    from task_search.store import InMemoryTaskStore

    store = InMemoryTaskStore()
    for page in sample_pages:
        store.add_page("db-1", page)
    return store
