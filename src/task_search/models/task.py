"""Task page model and the item interface seen by the ranking engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RankableItem(Protocol):
    """Minimal view of a candidate item needed for permission filtering."""

    id: str
    archived: bool
    created_time: datetime | None


@dataclass
class TaskPage:
    """A task page synced from the workspace tool."""

    id: str
    title: str
    url: str = ""
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    archived: bool = False
    properties: dict[str, Any] = field(default_factory=dict)

    def searchable_text(self) -> str:
        """Title followed by the plain text of every supported property."""
        parts = [self.title or ""]
        for prop in self.properties.values():
            text = property_text(prop)
            if text:
                parts.append(text)
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "created_time": self.created_time.isoformat() if self.created_time else None,
            "last_edited_time": (
                self.last_edited_time.isoformat() if self.last_edited_time else None
            ),
            "archived": self.archived,
        }


def property_text(prop: Any) -> str:
    """Extract plain text from a Notion-shaped property value."""
    if not isinstance(prop, dict):
        return ""

    prop_type = prop.get("type")
    if prop_type in ("title", "rich_text"):
        return " ".join(
            item.get("plain_text", "") for item in prop.get(prop_type) or []
        ).strip()
    if prop_type in ("select", "status"):
        value = prop.get(prop_type) or {}
        return value.get("name", "")
    if prop_type == "multi_select":
        return " ".join(item.get("name", "") for item in prop.get("multi_select") or [])
    if prop_type == "number":
        value = prop.get("number")
        return "" if value is None else str(value)
    if prop_type == "checkbox":
        return "checked" if prop.get("checkbox") else "unchecked"
    if prop_type in ("url", "email", "phone_number"):
        return prop.get(prop_type) or ""
    if prop_type == "date":
        value = prop.get("date") or {}
        return value.get("start", "") or ""
    return ""
