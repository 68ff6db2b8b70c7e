"""Dict-backed task store for local runs and tests."""

from dataclasses import replace
from typing import Any

import structlog

from task_search.exceptions import TaskStoreError
from task_search.models.task import TaskPage, property_text

logger = structlog.get_logger(__name__)


class InMemoryTaskStore:
    """Keeps task pages in memory, grouped by database id."""

    def __init__(self, status_property: str = "Status"):
        self.status_property = status_property
        self._pages: dict[str, TaskPage] = {}
        self._databases: dict[str, list[str]] = {}

    def add_page(self, database_id: str, page: TaskPage) -> TaskPage:
        if page.id in self._pages:
            raise TaskStoreError(f"Page already exists: {page.id}")
        self._pages[page.id] = page
        self._databases.setdefault(database_id, []).append(page.id)
        return page

    def update_page(self, page_id: str, **changes: Any) -> TaskPage:
        page = self._pages.get(page_id)
        if page is None:
            raise TaskStoreError(f"Page not found: {page_id}")
        updated = replace(page, **changes)
        self._pages[page_id] = updated
        return updated

    def delete_page(self, page_id: str) -> bool:
        if self._pages.pop(page_id, None) is None:
            return False
        for page_ids in self._databases.values():
            if page_id in page_ids:
                page_ids.remove(page_id)
        return True

    async def get_database_pages(self, database_id: str) -> list[TaskPage]:
        pages = [self._pages[pid] for pid in self._databases.get(database_id, [])]
        logger.debug("Loaded database pages", database_id=database_id, count=len(pages))
        return pages

    async def get_page(self, page_id: str) -> TaskPage | None:
        return self._pages.get(page_id)

    async def list_by_status(self, database_id: str, status: str) -> list[TaskPage]:
        wanted = status.strip().lower()
        return [
            page
            for page in await self.get_database_pages(database_id)
            if property_text(page.properties.get(self.status_property)).lower() == wanted
        ]
