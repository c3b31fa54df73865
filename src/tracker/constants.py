from __future__ import annotations

from enum import Enum


# PUBLIC_INTERFACE
class WorkItemType(str, Enum):
    """Variant tag of a work item."""

    EPIC = "epic"
    STORY = "story"
    TASK = "task"
    SUBTASK = "subtask"
    BUG = "bug"


# PUBLIC_INTERFACE
class Status(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


# PUBLIC_INTERFACE
class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Serialized timestamps, always UTC
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 200
