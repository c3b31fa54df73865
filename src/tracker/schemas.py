from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .constants import Priority, Status, WorkItemType
from .errors import PayloadError

# Payload schemas only check shape (known keys, string id, list of child ids).
# Field values are left as Any so the field rules of the work item report them.
_PAYLOAD_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


# PUBLIC_INTERFACE
class CreateTaskPayload(BaseModel):
    """
    Shape of a work item creation payload. Keys may be snake_case or camelCase.
    """

    model_config = ConfigDict(
        **_PAYLOAD_CONFIG,
        json_schema_extra={
            "example": {
                "id": "T-1",
                "title": "Implement login",
                "createdAt": "2025-01-01",
                "priority": "high",
            }
        },
    )

    id: str = Field(..., min_length=1, description="Unique identifier of the work item")
    title: Any = Field(default=None, description="Short title, 3..100 characters")
    description: Any = Field(default=None, description="Optional description, 10..200 characters")
    status: Any = Field(default=None, description="todo, in_progress or done")
    priority: Any = Field(default=None, description="low, medium or high")
    created_at: Any = Field(default=None, description="Creation time, defaults to now")
    deadline: Any = Field(default=None, description="Optional deadline, not before created_at")
    done_at: Any = Field(default=None, description="Optional completion time")
    children: Optional[List[str]] = Field(
        default=None, description="Child ids, only for epics, stories and tasks"
    )


# PUBLIC_INTERFACE
class UpdateTaskPayload(BaseModel):
    """
    Shape of a partial update. id, type, created_at and children are not updatable.
    """

    model_config = _PAYLOAD_CONFIG

    title: Any = None
    description: Any = None
    status: Any = None
    priority: Any = None
    deadline: Any = None
    done_at: Any = None


# PUBLIC_INTERFACE
class WorkItemOut(BaseModel):
    """
    Flat serialized view of a work item. Timestamps use the fixed
    YYYY-MM-DDTHH:MM:SS.ffffffZ form.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "T-1",
                "type": "task",
                "title": "Implement login",
                "created_at": "2025-01-01T00:00:00.000000Z",
                "status": "todo",
                "priority": "medium",
                "description": None,
                "deadline": None,
                "done_at": None,
                "children": [],
            }
        }
    )

    id: str
    type: WorkItemType
    title: str
    created_at: str
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    description: Optional[str] = None
    deadline: Optional[str] = None
    done_at: Optional[str] = None
    children: Optional[List[str]] = None


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "payload"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def _check(model: Type[BaseModel], payload: Mapping[str, Any]) -> BaseModel:
    if not isinstance(payload, Mapping):
        raise PayloadError(f"Invalid payload: expected a mapping, got {type(payload).__name__}")
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise PayloadError(f"Invalid payload: {_format_errors(exc)}") from exc


def _field_name(model: Type[BaseModel], key: str) -> str:
    for name in model.model_fields:
        if key == name or key == to_camel(name):
            return name
    return key


# PUBLIC_INTERFACE
def parse_create_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check the shape of a creation payload and return its provided fields
    under their snake_case names.
    """
    model = _check(CreateTaskPayload, payload)
    return model.model_dump(exclude_unset=True)


# PUBLIC_INTERFACE
def parse_update_payload(updates: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check the shape of an update payload and return it with snake_case keys,
    keeping the caller's key order.
    """
    _check(UpdateTaskPayload, updates)
    return {_field_name(UpdateTaskPayload, key): value for key, value in updates.items()}
