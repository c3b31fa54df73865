from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .settings import Settings, get_settings

if TYPE_CHECKING:
    from .models import WorkItem


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _enum(value: Any) -> Optional[str]:
    if value is None:
        return None
    raw = value.value if isinstance(value, Enum) else str(value)
    # in_progress -> In progress
    return raw.replace("_", " ").capitalize()


def _date(value: Any, date_format: str) -> Optional[str]:
    if not isinstance(value, datetime):
        return None
    return value.strftime(date_format)


def _list(values: Optional[Sequence[str]]) -> Optional[str]:
    if not values:
        return None
    return ", ".join(values)


# PUBLIC_INTERFACE
def task_rows(task: "WorkItem", settings: Optional[Settings] = None) -> List[Tuple[str, str]]:
    """
    Return the (label, value) pairs shown for a task, skipping empty fields.
    """
    s = settings or get_settings()
    rows = [
        ("id", _text(task.id)),
        ("type", _enum(task.type)),
        ("title", _text(task.title)),
        ("description", _text(task.description)),
        ("status", _enum(task.status)),
        ("priority", _enum(task.priority)),
        ("created at", _date(task.created_at, s.date_format)),
        ("deadline", _date(task.deadline, s.date_format)),
        ("done at", _date(task.done_at, s.date_format)),
        ("children", _list(task.children)),
    ]
    return [(label, value) for label, value in rows if value is not None]


# PUBLIC_INTERFACE
def render_task(task: "WorkItem", settings: Optional[Settings] = None) -> str:
    """Render a task as aligned 'LABEL:   value' lines."""
    s = settings or get_settings()
    lines = []
    for label, value in task_rows(task, s):
        key = f"{label.upper()}:"
        lines.append(f"{key:<{s.label_width}}{value}")
    return "\n".join(lines)
