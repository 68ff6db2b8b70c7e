"""Task store collaborators."""

from task_search.store.base import TaskStore
from task_search.store.memory import InMemoryTaskStore
from task_search.store.notion import NotionTaskStore, parse_page

__all__ = ["TaskStore", "InMemoryTaskStore", "NotionTaskStore", "parse_page"]
