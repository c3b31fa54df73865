from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Union

import click

from .constants import WorkItemType
from .models import WorkItem
from .repositories import TaskRepository

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ErrorRecord:
    """A captured failure and the input that triggered it, when there was one."""

    error: Exception
    entry: Optional[Any] = None


def _dump_entry(entry: Any) -> str:
    return json.dumps(entry, default=str)


# PUBLIC_INTERFACE
class TaskController:
    """
    Front for a TaskRepository that never lets an operation raise.

    Every failure is logged and kept in `errors` for later inspection;
    operations that failed return None.
    """

    def __init__(self, repository: TaskRepository) -> None:
        self._repository = repository
        self._errors: List[ErrorRecord] = []

    @property
    def errors(self) -> List[ErrorRecord]:
        return list(self._errors)

    def _capture(self, action: Callable[[], Any], entry: Optional[Any] = None) -> Any:
        try:
            return action()
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s: %s", type(exc).__name__, exc)
            self._errors.append(ErrorRecord(error=exc, entry=entry))
            return None

    def create_task(self, item_type: Union[WorkItemType, str], payload: Mapping[str, Any]) -> Optional[WorkItem]:
        return self._capture(lambda: self._repository.create_task(item_type, payload), entry=payload)

    def get_task(self, task_id: str) -> Optional[WorkItem]:
        return self._capture(lambda: self._repository.get_task(task_id))

    def get_all_tasks(self) -> List[WorkItem]:
        return self._capture(self._repository.get_all_tasks) or []

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Optional[WorkItem]:
        return self._capture(lambda: self._repository.update_task(task_id, updates), entry=updates)

    def add_child_to_task(self, parent_id: str, child_id: str) -> None:
        self._capture(
            lambda: self._repository.add_child_to_task(parent_id, child_id),
            entry={"parent_id": parent_id, "child_id": child_id},
        )

    def remove_child_from_task(self, parent_id: str, child_id: str) -> None:
        self._capture(
            lambda: self._repository.remove_child_from_task(parent_id, child_id),
            entry={"parent_id": parent_id, "child_id": child_id},
        )

    def remove_task(self, task_id: str) -> None:
        self._capture(lambda: self._repository.remove_task(task_id), entry={"id": task_id})

    def clear_errors(self) -> None:
        self._errors.clear()

    def format_errors(self) -> List[str]:
        lines: List[str] = []
        for index, record in enumerate(self._errors, start=1):
            lines.append(f"Error {index}: {record.error}")
            if record.entry is not None:
                lines.append(f"  Entry: {_dump_entry(record.entry)}")
        return lines

    def print_errors(self) -> None:
        for line in self.format_errors():
            click.echo(line, err=True)
