from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import WorkItemType
from .errors import CapabilityError, ChildNotLinkedError, DuplicateIdError, NotFoundError
from .models import WorkItem, create_work_item
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract repository contract for work item storage backends."""

    @abstractmethod
    def create_task(self, item_type: Union[WorkItemType, str], payload: Mapping[str, Any]) -> WorkItem:
        """Create, store and return a new work item of the given type."""

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[WorkItem]:
        """Return a work item by id, or None if not found."""

    @abstractmethod
    def get_all_tasks(self) -> List[WorkItem]:
        """Return every work item in creation order."""

    @abstractmethod
    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> WorkItem:
        """Apply a partial update to an existing work item and return it."""

    @abstractmethod
    def add_child_to_task(self, parent_id: str, child_id: str) -> None:
        """Link `child_id` under `parent_id`."""

    @abstractmethod
    def remove_child_from_task(self, parent_id: str, child_id: str) -> None:
        """Unlink `child_id` from `parent_id`."""

    @abstractmethod
    def remove_task(self, task_id: str) -> None:
        """Delete a work item. Child links pointing at it are left in place."""


class InMemoryTaskRepository(TaskRepository):
    """
    In-memory repository keyed by work item id.

    Not thread-safe: the repository and the items it hands out are meant to be
    used from a single thread.
    """

    def __init__(self) -> None:
        self._items: Dict[str, WorkItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._items

    def _require(self, task_id: str, role: str = "task") -> WorkItem:
        item = self._items.get(task_id)
        if item is None:
            raise NotFoundError(task_id, role)
        return item

    def create_task(self, item_type: Union[WorkItemType, str], payload: Mapping[str, Any]) -> WorkItem:
        task_id = payload.get("id") if isinstance(payload, Mapping) else None
        if isinstance(task_id, str) and task_id in self._items:
            raise DuplicateIdError(task_id)
        item = create_work_item(item_type, payload)
        self._items[item.id] = item
        logger.debug("Created %s %s", item.type.value, item.id)
        return item

    def get_task(self, task_id: str) -> Optional[WorkItem]:
        return self._items.get(task_id)

    def get_all_tasks(self) -> List[WorkItem]:
        return list(self._items.values())

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> WorkItem:
        item = self._require(task_id)
        item.update_details(updates)
        logger.debug("Updated %s", task_id)
        return item

    def add_child_to_task(self, parent_id: str, child_id: str) -> None:
        parent = self._require(parent_id, "parent")
        if not parent.has_children:
            raise CapabilityError(parent_id, parent.type)
        self._require(child_id, "child")
        parent.add_child(child_id)
        logger.debug("Linked %s under %s", child_id, parent_id)

    def remove_child_from_task(self, parent_id: str, child_id: str) -> None:
        parent = self._require(parent_id, "parent")
        if not parent.has_children:
            raise CapabilityError(parent_id, parent.type)
        if child_id not in (parent.children or []):
            raise ChildNotLinkedError(parent_id, child_id)
        parent.remove_child(child_id)
        logger.debug("Unlinked %s from %s", child_id, parent_id)

    def remove_task(self, task_id: str) -> None:
        self._require(task_id)
        del self._items[task_id]
        logger.debug("Removed %s", task_id)


# PUBLIC_INTERFACE
def get_repository() -> TaskRepository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryTaskRepository
    """
    settings = get_settings()
    logger.debug("Using %s repository", settings.backend)
    return InMemoryTaskRepository()
