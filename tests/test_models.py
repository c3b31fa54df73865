import json
from datetime import datetime, timedelta, timezone

import pytest

from tracker.constants import Priority, Status, WorkItemType
from tracker.errors import (
    AggregateValidationError,
    CapabilityError,
    FieldValidationError,
    PayloadError,
    UnknownTypeError,
)
from tracker.models import (
    CHILD_CAPABLE_TYPES,
    VARIANTS,
    Bug,
    Epic,
    Story,
    Subtask,
    Task,
    create_work_item,
    resolve_type,
)
from tracker.utils import parse_timestamp, utcnow

UTC = timezone.utc


def make_task(**overrides):
    fields = {"title": "Implement login", "created_at": "2025-01-01"}
    fields.update(overrides)
    return Task("T-1", **fields)


class TestConstruction:
    def test_defaults(self):
        before = utcnow()
        task = Task("T-1", "Implement login")
        assert task.id == "T-1"
        assert task.type is WorkItemType.TASK
        assert task.status is Status.TODO
        assert task.priority is Priority.MEDIUM
        assert before <= task.created_at <= utcnow()
        assert task.description is None
        assert task.deadline is None
        assert task.done_at is None
        assert task.children == []

    def test_enum_strings_are_normalized(self):
        task = make_task(status="in_progress", priority="high")
        assert task.status is Status.IN_PROGRESS
        assert task.priority is Priority.HIGH

    @pytest.mark.parametrize("title", ["", "ab", "a" * 101, "a" * 250])
    def test_title_length_out_of_bounds_fails(self, title):
        with pytest.raises(AggregateValidationError) as exc:
            make_task(title=title)
        assert "title" in exc.value.fields

    @pytest.mark.parametrize("title", ["abc", "a" * 100])
    def test_title_length_bounds_pass(self, title):
        assert make_task(title=title).title == title

    def test_missing_title_is_reported(self):
        with pytest.raises(AggregateValidationError) as exc:
            Task("T-1")
        assert exc.value.fields == ["title"]
        assert "Field title must be a string" in str(exc.value)

    def test_created_at_in_future_fails(self):
        with pytest.raises(AggregateValidationError) as exc:
            make_task(created_at=utcnow() + timedelta(seconds=30))
        assert exc.value.fields == ["created_at"]

    def test_created_at_now_succeeds(self):
        now = utcnow()
        assert make_task(created_at=now).created_at == now

    def test_deadline_before_created_at_fails(self):
        with pytest.raises(AggregateValidationError) as exc:
            make_task(created_at="2025-01-10", deadline="2025-01-09")
        assert exc.value.fields == ["deadline"]

    def test_deadline_equal_to_created_at_succeeds(self):
        task = make_task(created_at="2025-01-10", deadline="2025-01-10")
        assert task.deadline == task.created_at

    def test_done_at_in_future_fails(self):
        with pytest.raises(AggregateValidationError) as exc:
            make_task(done_at=utcnow() + timedelta(days=1))
        assert exc.value.fields == ["done_at"]

    def test_done_at_before_created_at_fails(self):
        with pytest.raises(AggregateValidationError) as exc:
            make_task(created_at="2025-01-10", done_at="2025-01-01")
        assert exc.value.fields == ["done_at"]

    def test_every_violation_is_aggregated(self):
        with pytest.raises(AggregateValidationError) as exc:
            Task(
                "T-1",
                "x",
                created_at="not-a-date",
                status="blocked",
                priority=5,
                description="tiny",
                deadline="2025-01-01",
            )
        assert exc.value.fields == ["title", "created_at", "status", "priority", "description", "deadline"]
        assert str(exc.value).startswith("Validation errors: Field title must be at least 3")
        assert "Field created_at is not a valid datetime" in str(exc.value)

    def test_uncoercible_datetime_raises_immediately(self):
        with pytest.raises(FieldValidationError) as exc:
            make_task(deadline=True)
        assert exc.value.field == "deadline"

    def test_children_rejected_for_items_without_capability(self):
        with pytest.raises(CapabilityError):
            Subtask("ST-1", "Subtask", created_at="2025-01-01", children=["T-1"])

    def test_children_from_payload(self):
        epic = Epic("E-1", "Epic title", created_at="2025-01-01", children=["S-1", "S-1"])
        assert epic.children == ["S-1", "S-1"]


class TestFromPayload:
    def test_accepts_camel_case_keys(self):
        task = Task.from_payload({"id": "T-1", "title": "Implement login", "createdAt": "2025-01-01", "doneAt": "2025-01-02"})
        assert task.created_at == datetime(2025, 1, 1, tzinfo=UTC)
        assert task.done_at == datetime(2025, 1, 2, tzinfo=UTC)

    def test_rejects_unknown_keys(self):
        with pytest.raises(PayloadError) as exc:
            Task.from_payload({"id": "T-1", "title": "Implement login", "owner": "me"})
        assert "owner" in str(exc.value)

    def test_rejects_non_string_id(self):
        with pytest.raises(PayloadError):
            Task.from_payload({"id": 7, "title": "Implement login"})

    def test_field_values_are_left_to_field_rules(self):
        with pytest.raises(AggregateValidationError) as exc:
            Task.from_payload({"id": "T-1", "title": 12345, "createdAt": "2025-01-01"})
        assert exc.value.fields == ["title"]


class TestMutation:
    def test_valid_write_is_applied(self):
        task = make_task()
        task.title = "Implement logout"
        task.deadline = "2025-03-01"
        assert task.title == "Implement logout"
        assert task.deadline == datetime(2025, 3, 1, tzinfo=UTC)

    def test_invalid_write_raises_for_that_field_and_keeps_old_value(self):
        task = make_task()
        with pytest.raises(FieldValidationError) as exc:
            task.title = "ab"
        assert exc.value.field == "title"
        assert task.title == "Implement login"

    def test_deadline_write_checks_live_created_at(self):
        task = make_task(created_at="2025-01-10")
        with pytest.raises(FieldValidationError) as exc:
            task.deadline = "2025-01-05"
        assert str(exc.value) == "Field deadline must be after field created_at"
        assert task.deadline is None

    def test_invalid_datetime_string_write_is_rejected(self):
        task = make_task()
        with pytest.raises(FieldValidationError):
            task.done_at = "not-a-date"
        assert task.done_at is None

    def test_id_and_type_are_read_only(self):
        task = make_task()
        with pytest.raises(AttributeError):
            task.id = "T-2"
        with pytest.raises(AttributeError):
            task.type = WorkItemType.BUG

    def test_status_change_away_from_done_clears_done_at(self):
        task = make_task(status="done", done_at="2025-01-02")
        assert task.to_dict()["done_at"] == "2025-01-02T00:00:00.000000Z"
        task.status = Status.IN_PROGRESS
        assert task.done_at is None
        assert task.to_dict()["done_at"] is None
        assert task.to_dict()["status"] == "in_progress"

    def test_status_staying_done_keeps_done_at(self):
        task = make_task(status="done", done_at="2025-01-02")
        task.status = "done"
        assert task.done_at == datetime(2025, 1, 2, tzinfo=UTC)

    def test_clearing_done_at_reopens_done_item(self):
        task = make_task(status="done", done_at="2025-01-02")
        task.done_at = None
        assert task.status is Status.IN_PROGRESS

    def test_clearing_done_at_on_open_item_keeps_status(self):
        task = make_task(status="todo")
        task.done_at = None
        assert task.status is Status.TODO

    def test_done_without_done_at_is_kept_at_construction(self):
        assert make_task(status="done").status is Status.DONE

    def test_status_change_on_open_item_keeps_done_at(self):
        task = make_task(done_at="2025-01-03")
        assert task.status is Status.TODO
        task.status = Status.IN_PROGRESS
        assert task.done_at == datetime(2025, 1, 3, tzinfo=UTC)
        assert task.status is Status.IN_PROGRESS

    @pytest.mark.parametrize("other", ["deadline", "done_at"])
    def test_created_at_cannot_move_past_dependent_dates(self, other):
        task = make_task(deadline="2025-01-05", done_at="2025-01-03")
        with pytest.raises(FieldValidationError) as exc:
            task.created_at = "2025-06-01"
        assert exc.value.field == "created_at"
        assert task.created_at == datetime(2025, 1, 1, tzinfo=UTC)
        assert getattr(task, other) >= task.created_at

    def test_created_at_write_names_the_violated_field(self):
        task = make_task(done_at="2025-01-03")
        with pytest.raises(FieldValidationError) as exc:
            task.created_at = "2025-01-04"
        assert str(exc.value) == "Field created_at must be before field done_at"

    def test_created_at_can_move_up_to_dependent_dates(self):
        task = make_task(deadline="2025-01-05", done_at="2025-01-03")
        task.created_at = "2025-01-03"
        assert task.created_at == datetime(2025, 1, 3, tzinfo=UTC)


class TestUpdateDetails:
    def test_applies_fields_in_order(self):
        task = make_task()
        task.update_details({"status": "done", "doneAt": "2025-01-05", "priority": "low"})
        assert task.status is Status.DONE
        assert task.done_at == datetime(2025, 1, 5, tzinfo=UTC)
        assert task.priority is Priority.LOW

    def test_later_fields_see_earlier_writes(self):
        task = make_task(status="done", done_at="2025-01-02")
        task.update_details({"done_at": None, "status": "done"})
        assert task.status is Status.DONE
        assert task.done_at is None

    def test_partial_application_without_rollback(self):
        task = make_task()
        with pytest.raises(FieldValidationError) as exc:
            task.update_details({"title": "Implement logout", "description": "short"})
        assert exc.value.field == "description"
        assert task.title == "Implement logout"
        assert task.description is None

    @pytest.mark.parametrize("key", ["id", "created_at", "createdAt", "type", "children"])
    def test_rejects_non_updatable_fields_before_applying_anything(self, key):
        task = make_task()
        with pytest.raises(PayloadError):
            task.update_details({"title": "Implement logout", key: "x"})
        assert task.title == "Implement login"


class TestChildren:
    def test_add_child_keeps_duplicates(self):
        task = make_task()
        task.add_child("ST-1")
        task.add_child("ST-1")
        assert task.children == ["ST-1", "ST-1"]

    def test_remove_child_removes_every_occurrence(self):
        task = make_task()
        for child in ("ST-1", "ST-2", "ST-1"):
            task.add_child(child)
        task.remove_child("ST-1")
        assert task.children == ["ST-2"]
        task.remove_child("missing")
        assert task.children == ["ST-2"]

    @pytest.mark.parametrize("cls", [Subtask, Bug])
    def test_items_without_capability_raise(self, cls):
        item = cls("X-1", "No children", created_at="2025-01-01")
        assert item.children is None
        with pytest.raises(CapabilityError):
            item.add_child("T-1")
        with pytest.raises(CapabilityError):
            item.remove_child("T-1")

    def test_capability_set(self):
        assert CHILD_CAPABLE_TYPES == {WorkItemType.EPIC, WorkItemType.STORY, WorkItemType.TASK}
        assert Story("S-1", "Story title", created_at="2025-01-01").children == []


class TestSerialization:
    def test_to_dict_shape(self):
        task = make_task(description="A longer description")
        assert task.to_dict() == {
            "id": "T-1",
            "type": "task",
            "title": "Implement login",
            "created_at": "2025-01-01T00:00:00.000000Z",
            "status": "todo",
            "priority": "medium",
            "description": "A longer description",
            "deadline": None,
            "done_at": None,
            "children": [],
        }

    def test_items_without_capability_serialize_no_children(self):
        assert Bug("B-1", "Broken", created_at="2025-01-01").to_dict()["children"] is None

    def test_timestamps_round_trip_exactly(self):
        created = datetime(2025, 1, 1, 12, 30, 15, 123456, tzinfo=UTC)
        task = make_task(created_at=created, deadline="2025-02-01T08:00:00+02:00", done_at=created)
        data = task.to_dict()
        assert data["created_at"] == "2025-01-01T12:30:15.123456Z"
        assert data["deadline"] == "2025-02-01T06:00:00.000000Z"
        assert parse_timestamp(data["created_at"]) == task.created_at
        assert parse_timestamp(data["deadline"]) == task.deadline
        assert parse_timestamp(data["done_at"]) == task.done_at

    def test_to_json_matches_to_dict(self):
        task = make_task()
        assert json.loads(task.to_json()) == task.to_dict()


class TestDoneInTime:
    def test_false_without_done_at_or_deadline(self, caplog):
        assert make_task().is_done_in_time is False
        assert make_task(done_at="2025-01-02").is_done_in_time is False
        assert "does not have a deadline" in caplog.text

    def test_compares_deadline_and_done_at(self):
        assert make_task(deadline="2025-01-05", done_at="2025-01-02").is_done_in_time is True
        assert make_task(deadline="2025-01-02", done_at="2025-01-05").is_done_in_time is False


class TestVariants:
    def test_every_type_has_a_variant(self):
        assert set(VARIANTS) == set(WorkItemType)
        for item_type, cls in VARIANTS.items():
            assert cls("X-1", "Some title", created_at="2025-01-01").type is item_type

    def test_create_work_item_by_string_tag(self):
        item = create_work_item("epic", {"id": "E-1", "title": "Epic title", "createdAt": "2025-01-01"})
        assert isinstance(item, Epic)

    def test_unknown_type(self):
        with pytest.raises(UnknownTypeError):
            resolve_type("initiative")
