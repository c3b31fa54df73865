"""
In-memory work item tracker.

Epics, stories, tasks, subtasks and bugs whose fields are checked by a
declarative per-field rule table on construction and on every later write.
"""

__version__ = "0.1.0"

from .constants import Priority, Status, WorkItemType  # noqa: E402
from .controller import ErrorRecord, TaskController  # noqa: E402
from .errors import (  # noqa: E402
    AggregateValidationError,
    CapabilityError,
    ChildNotLinkedError,
    DuplicateIdError,
    FieldValidationError,
    NotFoundError,
    PayloadError,
    TrackerError,
    UnknownTypeError,
)
from .models import Bug, Epic, Story, Subtask, Task, WorkItem  # noqa: E402
from .repositories import InMemoryTaskRepository, TaskRepository, get_repository  # noqa: E402

__all__ = [
    "AggregateValidationError",
    "Bug",
    "CapabilityError",
    "ChildNotLinkedError",
    "DuplicateIdError",
    "Epic",
    "ErrorRecord",
    "FieldValidationError",
    "InMemoryTaskRepository",
    "NotFoundError",
    "PayloadError",
    "Priority",
    "Status",
    "Story",
    "Subtask",
    "Task",
    "TaskController",
    "TaskRepository",
    "TrackerError",
    "UnknownTypeError",
    "WorkItem",
    "WorkItemType",
    "get_repository",
]
