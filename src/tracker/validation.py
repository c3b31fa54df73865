"""
Declarative field validation for work items.

Each entity type owns a FieldTable: an ordered mapping of field name to the
chain of rules that guard it. Property setters call into the table on every
write, and constructors run a full pass over the table to report every
violation at once.

A rule is a callable ``(value, field_name, owner) -> FieldValidationError | None``.
A coercer is a callable ``(value, field_name) -> value`` that may replace the
incoming value (it raises FieldValidationError when the input cannot be
converted). A field has at most one coercer and it always runs before the
field's rules.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from . import utils
from .errors import AggregateValidationError, FieldValidationError

Rule = Callable[[Any, str, Any], Optional[FieldValidationError]]
Coercer = Callable[[Any, str], Any]


class _InvalidDateTime:
    """Result of coercing a value that looks like a timestamp but does not parse."""

    _instance: Optional["_InvalidDateTime"] = None

    def __new__(cls) -> "_InvalidDateTime":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INVALID_DATETIME"


INVALID_DATETIME = _InvalidDateTime()


# PUBLIC_INTERFACE
class FieldRules:
    """The rule chain of a single field."""

    __slots__ = ("name", "rules", "required", "coerce")

    def __init__(
        self,
        name: str,
        *rules: Rule,
        required: bool = False,
        coerce: Optional[Coercer] = None,
    ) -> None:
        self.name = name
        self.rules = tuple(rules)
        self.required = required
        self.coerce = coerce

    def __repr__(self) -> str:
        return f"FieldRules({self.name!r}, rules={len(self.rules)}, required={self.required})"


# PUBLIC_INTERFACE
class FieldTable:
    """
    Ordered per-type registry of field rule chains.

    Declaration order matters: the full pass walks fields in this order, and
    cross-field rules read the other field's live value from the owner.
    """

    def __init__(self, *fields: FieldRules) -> None:
        self._fields: Dict[str, FieldRules] = {}
        for entry in fields:
            self._fields[entry.name] = entry

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def coerce(self, name: str, value: Any) -> Any:
        entry = self._fields[name]
        if entry.coerce is None:
            return value
        if value is None and not entry.required:
            return None
        return entry.coerce(value, name)

    def check(self, owner: Any, name: str, value: Any) -> Optional[FieldValidationError]:
        """Run the rules of one field against `value` and return the first violation."""
        entry = self._fields[name]
        if value is None and not entry.required:
            return None
        for rule in entry.rules:
            error = rule(value, name, owner)
            if error is not None:
                return error
        return None

    def collect(self, owner: Any) -> List[FieldValidationError]:
        """Check every field against the owner's current values."""
        errors: List[FieldValidationError] = []
        for name in self:
            error = self.check(owner, name, getattr(owner, name, None))
            if error is not None:
                errors.append(error)
        return errors

    def validate(self, owner: Any) -> None:
        errors = self.collect(owner)
        if errors:
            raise AggregateValidationError(errors)


# Rule catalog


def is_string(value: Any, field: str, owner: Any = None) -> Optional[FieldValidationError]:
    if not isinstance(value, str):
        return FieldValidationError(field, f"Field {field} must be a string")
    return None


def min_length(minimum: int) -> Rule:
    def rule(value: Any, field: str, owner: Any = None) -> Optional[FieldValidationError]:
        if len(value) < minimum:
            return FieldValidationError(field, f"Field {field} must be at least {minimum} characters long")
        return None

    return rule


def max_length(maximum: int) -> Rule:
    def rule(value: Any, field: str, owner: Any = None) -> Optional[FieldValidationError]:
        if len(value) > maximum:
            return FieldValidationError(field, f"Field {field} must be at most {maximum} characters long")
        return None

    return rule


def one_of(enum_cls: Type[Enum]) -> Rule:
    """Accept members of `enum_cls` or their string values."""
    allowed = [member.value for member in enum_cls]

    def rule(value: Any, field: str, owner: Any = None) -> Optional[FieldValidationError]:
        if not isinstance(value, str):
            return FieldValidationError(
                field, f"Incorrect value type for field {field}: must be a valid enum value"
            )
        if value not in allowed:
            return FieldValidationError(field, f"Field {field} must be one of: {', '.join(allowed)}")
        return None

    return rule


def to_datetime(value: Any, field: str) -> Any:
    """
    Coerce `value` into an aware UTC datetime.

    datetimes and dates pass through (naive values are taken as UTC, dates
    become midnight), numbers are read as milliseconds since the epoch and
    strings as ISO8601. Inputs of the right type that cannot be converted
    yield INVALID_DATETIME; inputs of any other type raise.
    """
    if isinstance(value, datetime):
        return utils.as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return INVALID_DATETIME
    if isinstance(value, str):
        parsed = utils.parse_timestamp(value)
        return INVALID_DATETIME if parsed is None else parsed
    raise FieldValidationError(field, f"Field {field} must be a datetime or string/number")


def is_valid_datetime(value: Any, field: str, owner: Any = None) -> Optional[FieldValidationError]:
    if not isinstance(value, datetime):
        return FieldValidationError(field, f"Field {field} is an invalid datetime")
    return None


def not_in_future(value: datetime, field: str, owner: Any = None) -> Optional[FieldValidationError]:
    if value > utils.utcnow():
        return FieldValidationError(field, f"Field {field} must be in the past")
    return None


def is_after(other_field: str) -> Rule:
    """The value must be on or after the owner's current `other_field` value."""

    def rule(value: datetime, field: str, owner: Any = None) -> Optional[FieldValidationError]:
        other = getattr(owner, other_field, None)
        if not isinstance(other, datetime):
            return FieldValidationError(field, f"Field {other_field} is not a valid datetime")
        if value < other:
            return FieldValidationError(field, f"Field {field} must be after field {other_field}")
        return None

    return rule


def is_before(other_field: str) -> Rule:
    """The value must be on or before the owner's current `other_field` value, when that is set."""

    def rule(value: datetime, field: str, owner: Any = None) -> Optional[FieldValidationError]:
        other = getattr(owner, other_field, None)
        if isinstance(other, datetime) and value > other:
            return FieldValidationError(field, f"Field {field} must be before field {other_field}")
        return None

    return rule
