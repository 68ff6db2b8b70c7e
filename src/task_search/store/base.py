"""Task store interface."""

from typing import Protocol

from task_search.models.task import TaskPage


class TaskStore(Protocol):
    """Read access to task pages held by an external workspace tool."""

    async def get_database_pages(self, database_id: str) -> list[TaskPage]:
        """Return every non-deleted page of a task database."""
        ...

    async def get_page(self, page_id: str) -> TaskPage | None:
        ...

    async def list_by_status(self, database_id: str, status: str) -> list[TaskPage]:
        """Return the pages of a database whose status equals ``status``."""
        ...
