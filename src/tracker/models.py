from __future__ import annotations

import logging
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Type, Union

from . import utils
from .constants import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    Priority,
    Status,
    WorkItemType,
)
from .display import render_task
from .errors import CapabilityError, UnknownTypeError
from .schemas import WorkItemOut, parse_create_payload, parse_update_payload
from .settings import Settings
from .validation import (
    FieldRules,
    FieldTable,
    is_after,
    is_before,
    is_string,
    is_valid_datetime,
    max_length,
    min_length,
    not_in_future,
    one_of,
    to_datetime,
)

logger = logging.getLogger(__name__)

# Checked on created_at writes after construction.
_CREATED_AT_BOUNDS = (is_before("deadline"), is_before("done_at"))


def _as_member(enum_cls: Type[Enum], value: Any) -> Any:
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return value


# PUBLIC_INTERFACE
class WorkItem:
    """
    Common shape of every work item.

    Every field write goes through a property setter that consults the
    class-level field table. While the constructor runs, only coercion is
    applied; the constructor then validates the whole item and raises a single
    AggregateValidationError listing every violated field. After construction
    each write is checked before it is stored and a violation raises a
    FieldValidationError for that field, leaving the old value in place.
    """

    item_type: ClassVar[WorkItemType]
    has_children: ClassVar[bool] = False

    fields: ClassVar[FieldTable] = FieldTable(
        FieldRules(
            "title",
            is_string,
            min_length(TITLE_MIN_LENGTH),
            max_length(TITLE_MAX_LENGTH),
            required=True,
        ),
        FieldRules("created_at", is_valid_datetime, not_in_future, required=True, coerce=to_datetime),
        FieldRules("status", one_of(Status)),
        FieldRules("priority", one_of(Priority)),
        FieldRules(
            "description",
            is_string,
            min_length(DESCRIPTION_MIN_LENGTH),
            max_length(DESCRIPTION_MAX_LENGTH),
        ),
        FieldRules("deadline", is_valid_datetime, is_after("created_at"), coerce=to_datetime),
        FieldRules(
            "done_at",
            is_valid_datetime,
            not_in_future,
            is_after("created_at"),
            coerce=to_datetime,
        ),
    )

    def __init__(
        self,
        id: str,
        title: Any = None,
        *,
        description: Any = None,
        status: Any = None,
        priority: Any = None,
        created_at: Any = None,
        deadline: Any = None,
        done_at: Any = None,
        children: Optional[List[str]] = None,
    ) -> None:
        self._initialized = False
        self._id = id
        self._title: Any = None
        self._created_at: Any = None
        self._status: Any = None
        self._priority: Any = None
        self._description: Any = None
        self._deadline: Any = None
        self._done_at: Any = None
        self._children: Optional[List[str]] = None

        if children is not None and not self.has_children:
            raise CapabilityError(id, self.item_type)

        self.title = title
        self.created_at = created_at if created_at is not None else utils.utcnow()
        self.status = status if status is not None else Status.TODO
        self.priority = priority if priority is not None else Priority.MEDIUM
        self.description = description
        self.deadline = deadline
        if done_at is not None:
            self.done_at = done_at
        if self.has_children:
            self._children = list(children or [])

        self.fields.validate(self)
        self._initialized = True

    # PUBLIC_INTERFACE
    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WorkItem":
        """Build an item from a creation payload (snake_case or camelCase keys)."""
        return cls(**parse_create_payload(payload))

    def _checked(self, name: str, value: Any) -> Any:
        value = self.fields.coerce(name, value)
        if self._initialized:
            error = self.fields.check(self, name, value)
            if error is not None:
                raise error
        return value

    @property
    def id(self) -> str:
        return self._id

    @property
    def type(self) -> WorkItemType:
        return self.item_type

    @property
    def title(self) -> Any:
        return self._title

    @title.setter
    def title(self, value: Any) -> None:
        self._title = self._checked("title", value)

    @property
    def created_at(self) -> Any:
        return self._created_at

    @created_at.setter
    def created_at(self, value: Any) -> None:
        value = self._checked("created_at", value)
        if self._initialized:
            for rule in _CREATED_AT_BOUNDS:
                error = rule(value, "created_at", self)
                if error is not None:
                    raise error
        self._created_at = value

    @property
    def status(self) -> Any:
        return self._status

    @status.setter
    def status(self, value: Any) -> None:
        value = _as_member(Status, self._checked("status", value))
        if self._done_at is not None and self._status == Status.DONE and value != Status.DONE:
            self._done_at = None
        self._status = value

    @property
    def priority(self) -> Any:
        return self._priority

    @priority.setter
    def priority(self, value: Any) -> None:
        self._priority = _as_member(Priority, self._checked("priority", value))

    @property
    def description(self) -> Any:
        return self._description

    @description.setter
    def description(self, value: Any) -> None:
        self._description = self._checked("description", value)

    @property
    def deadline(self) -> Any:
        return self._deadline

    @deadline.setter
    def deadline(self, value: Any) -> None:
        self._deadline = self._checked("deadline", value)

    @property
    def done_at(self) -> Any:
        return self._done_at

    @done_at.setter
    def done_at(self, value: Any) -> None:
        self._done_at = self._checked("done_at", value)
        if self._done_at is None and self._status == Status.DONE:
            self.status = Status.IN_PROGRESS

    @property
    def children(self) -> Optional[List[str]]:
        """Child ids in link order; None for items that cannot have children."""
        return self._children

    # PUBLIC_INTERFACE
    def add_child(self, child_id: str) -> None:
        """Append `child_id`; duplicates are kept."""
        if self._children is None:
            raise CapabilityError(self._id, self.item_type)
        self._children.append(child_id)

    # PUBLIC_INTERFACE
    def remove_child(self, child_id: str) -> None:
        """Remove every occurrence of `child_id`; no-op when it is not linked."""
        if self._children is None:
            raise CapabilityError(self._id, self.item_type)
        self._children = [c for c in self._children if c != child_id]

    # PUBLIC_INTERFACE
    def update_details(self, updates: Mapping[str, Any]) -> None:
        """
        Apply a partial update field by field, in the mapping's order.

        Each assignment is validated on its own. The first invalid field
        raises and fields assigned before it stay applied: there is no
        rollback.
        """
        for name, value in parse_update_payload(updates).items():
            setattr(self, name, value)
            logger.debug("Updated %s.%s", self._id, name)

    @property
    def is_done_in_time(self) -> bool:
        if self._done_at is None:
            logger.warning("Task %s has not been done yet", self._id)
            return False
        if self._deadline is None:
            logger.warning("Task %s does not have a deadline", self._id)
            return False
        return self._deadline > self._done_at

    # PUBLIC_INTERFACE
    def to_out(self) -> WorkItemOut:
        return WorkItemOut(
            id=self._id,
            type=self.item_type,
            title=self._title,
            created_at=utils.format_timestamp(self._created_at),
            status=self._status,
            priority=self._priority,
            description=self._description,
            deadline=utils.format_timestamp(self._deadline),
            done_at=utils.format_timestamp(self._done_at),
            children=None if self._children is None else list(self._children),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Flat record with timestamps rendered as strings."""
        return self.to_out().model_dump(mode="json")

    def to_json(self) -> str:
        return self.to_out().model_dump_json()

    def describe(self, settings: Optional[Settings] = None) -> str:
        """Human-readable dump of the item, one aligned field per line."""
        return render_task(self, settings)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, title={self._title!r}, status={self._status!r})"


class Epic(WorkItem):
    item_type = WorkItemType.EPIC
    has_children = True


class Story(WorkItem):
    item_type = WorkItemType.STORY
    has_children = True


class Task(WorkItem):
    item_type = WorkItemType.TASK
    has_children = True


class Subtask(WorkItem):
    item_type = WorkItemType.SUBTASK


class Bug(WorkItem):
    item_type = WorkItemType.BUG


VARIANTS: Dict[WorkItemType, Type[WorkItem]] = {
    cls.item_type: cls for cls in (Epic, Story, Task, Subtask, Bug)
}

CHILD_CAPABLE_TYPES: FrozenSet[WorkItemType] = frozenset(
    item_type for item_type, cls in VARIANTS.items() if cls.has_children
)


# PUBLIC_INTERFACE
def resolve_type(item_type: Union[WorkItemType, str]) -> WorkItemType:
    """Map a type tag (enum member or its string value) to WorkItemType."""
    try:
        return WorkItemType(item_type)
    except (ValueError, TypeError):
        raise UnknownTypeError(item_type) from None


# PUBLIC_INTERFACE
def create_work_item(item_type: Union[WorkItemType, str], payload: Mapping[str, Any]) -> WorkItem:
    return VARIANTS[resolve_type(item_type)].from_payload(payload)
