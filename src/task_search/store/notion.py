"""Task store backed by the Notion REST API."""

from datetime import datetime
from typing import Any

import httpx
import structlog
from dateutil import parser as date_parser

from task_search.config import Settings, get_settings
from task_search.exceptions import TaskStoreError
from task_search.models.task import TaskPage, property_text

logger = structlog.get_logger(__name__)

PAGE_SIZE = 100


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.warning("Unparseable Notion timestamp", value=value)
        return None


def parse_page(data: dict[str, Any]) -> TaskPage:
    """Map a Notion page object to a TaskPage."""
    properties = data.get("properties") or {}
    title = ""
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = property_text(prop)
            break

    return TaskPage(
        id=data.get("id", ""),
        title=title,
        url=data.get("url") or "",
        created_time=_parse_timestamp(data.get("created_time")),
        last_edited_time=_parse_timestamp(data.get("last_edited_time")),
        archived=bool(data.get("archived") or data.get("in_trash")),
        properties=properties,
    )


class NotionTaskStore:
    """Reads task databases and pages through the Notion API."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            if not self.settings.has_notion:
                raise TaskStoreError("NOTION_API_KEY is not configured")
            self._client = httpx.AsyncClient(
                base_url=self.settings.notion_api_url,
                headers={
                    "Authorization": f"Bearer {self.settings.notion_api_key}",
                    "Notion-Version": self.settings.notion_version,
                    "Content-Type": "application/json",
                },
                timeout=self.settings.notion_timeout_seconds,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Notion request failed", method=method, path=path, error=str(e))
            raise TaskStoreError(f"Notion request failed: {e}") from e
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            message = response.json().get("message", response.text)
        except ValueError:
            message = response.text
        logger.error(
            "Notion API error",
            status_code=response.status_code,
            path=response.request.url.path,
            message=message,
        )
        raise TaskStoreError(f"Notion API error {response.status_code}: {message}")

    async def _query_database(
        self,
        database_id: str,
        filter_: dict[str, Any] | None = None,
    ) -> list[TaskPage]:
        pages: list[TaskPage] = []
        cursor = None

        while True:
            body: dict[str, Any] = {"page_size": PAGE_SIZE}
            if filter_:
                body["filter"] = filter_
            if cursor:
                body["start_cursor"] = cursor

            response = await self._request("POST", f"/v1/databases/{database_id}/query", json=body)
            self._raise_for_status(response)
            data = response.json()

            pages.extend(
                parse_page(item) for item in data.get("results", []) if item.get("object") == "page"
            )

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break

        logger.debug("Queried Notion database", database_id=database_id, count=len(pages))
        return pages

    async def get_database_pages(self, database_id: str) -> list[TaskPage]:
        return await self._query_database(database_id)

    async def get_page(self, page_id: str) -> TaskPage | None:
        response = await self._request("GET", f"/v1/pages/{page_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return parse_page(response.json())

    async def list_by_status(self, database_id: str, status: str) -> list[TaskPage]:
        return await self._query_database(
            database_id,
            {"property": self.settings.notion_status_property, "status": {"equals": status}},
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
