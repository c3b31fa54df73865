from __future__ import annotations

from typing import List, Sequence


def _tag(value: object) -> object:
    return getattr(value, "value", value)


# PUBLIC_INTERFACE
class TrackerError(Exception):
    """Base class for every error raised by the tracker."""


class ValidationError(TrackerError):
    """Base class for field validation failures."""


# PUBLIC_INTERFACE
class FieldValidationError(ValidationError):
    """
    A single field violated a single rule.

    Raised directly by writes after construction, and collected into an
    AggregateValidationError during construction.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


# PUBLIC_INTERFACE
class AggregateValidationError(ValidationError):
    """Every violation found while validating a freshly constructed item."""

    def __init__(self, errors: Sequence[FieldValidationError]) -> None:
        self.errors: List[FieldValidationError] = list(errors)
        super().__init__("Validation errors: " + "; ".join(e.message for e in self.errors))

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class PayloadError(TrackerError):
    """A creation or update payload has the wrong shape."""


# PUBLIC_INTERFACE
class DuplicateIdError(TrackerError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} already exists")
        self.task_id = task_id


# PUBLIC_INTERFACE
class UnknownTypeError(TrackerError):
    def __init__(self, item_type: object) -> None:
        super().__init__(f"Unknown work item type: {_tag(item_type)}")
        self.item_type = item_type


# PUBLIC_INTERFACE
class NotFoundError(TrackerError):
    """
    An operation referenced an id that is not in the repository.

    `role` tells which id was missing: "task", "parent" or "child".
    """

    def __init__(self, task_id: str, role: str = "task") -> None:
        label = "Task" if role == "task" else f"{role.capitalize()} task"
        super().__init__(f"{label} with id {task_id} not found")
        self.task_id = task_id
        self.role = role


# PUBLIC_INTERFACE
class CapabilityError(TrackerError):
    def __init__(self, task_id: str, item_type: object) -> None:
        super().__init__(f"Task with id {task_id} ({_tag(item_type)}) cannot have children")
        self.task_id = task_id
        self.item_type = item_type


# PUBLIC_INTERFACE
class ChildNotLinkedError(TrackerError):
    def __init__(self, parent_id: str, child_id: str) -> None:
        super().__init__(f"Child task with id {child_id} not found in parent task {parent_id}")
        self.parent_id = parent_id
        self.child_id = child_id
