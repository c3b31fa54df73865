"""
Walk through the tracker's validation and repository error paths.

Usage:
    tracker-demo [--log-level DEBUG]
"""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

import click

from . import __version__
from .constants import Priority, Status, WorkItemType
from .controller import TaskController
from .repositories import get_repository
from .settings import get_settings
from .utils import setup_logging, utcnow

SEPARATOR = "=" * 29


def invalid_payloads() -> List[Dict[str, Any]]:
    """Creation payloads that each break at least one field rule."""
    now = utcnow()
    past = now - timedelta(days=30)
    return [
        {"id": "T-001", "title": "ab", "created_at": now},
        {"id": "T-002", "title": "a" * 101, "created_at": now},
        {"id": "T-003", "title": "Valid Title", "created_at": "not-a-date"},
        {"id": "T-004", "title": "Valid Title", "created_at": now, "deadline": "2000-01-01"},
        {"id": "T-005", "title": "Valid Title", "created_at": now, "status": "NOT_A_STATUS"},
        {"id": "T-006", "title": "Valid Title", "created_at": now, "priority": "NOT_A_PRIORITY"},
        {"id": "T-007", "title": "Valid Title", "created_at": now, "description": "short"},
        {"id": "T-008", "title": "Valid Title", "created_at": now, "description": "a" * 201},
        {"id": "T-009", "title": "Valid Title", "created_at": now, "done_at": "not-a-date"},
        {"id": "T-010", "title": "Valid Title", "created_at": past, "done_at": now + timedelta(days=1)},
        {"id": "T-011", "title": "Valid Title", "created_at": past, "deadline": past - timedelta(days=1)},
        {"id": "T-012", "title": "Valid Title", "created_at": past, "done_at": past - timedelta(days=1)},
        {"id": "T-013", "title": "Valid Title", "created_at": now + timedelta(days=7)},
        {"id": "T-014", "title": 12345, "created_at": past},
        {"id": "T-015", "title": "Valid Title", "created_at": past, "deadline": True},
        {"id": "T-016", "title": "Valid Title", "created_at": past, "status": 123},
        {"id": "T-017", "title": "Valid Title", "created_at": past, "priority": 456},
        {"id": "T-018", "title": "Valid Title", "created_at": past, "description": {"text": "not a string"}},
        {"id": "T-019", "title": "x", "created_at": "not-a-date", "status": "?", "description": "tiny"},
    ]


def valid_payloads() -> List[Tuple[WorkItemType, Dict[str, Any]]]:
    created = "2025-10-27"
    return [
        (WorkItemType.EPIC, {"id": "E-001", "title": "Authentication overhaul", "createdAt": created}),
        (WorkItemType.STORY, {"id": "S-001", "title": "Login with email", "createdAt": created}),
        (WorkItemType.TASK, {"id": "T-101", "title": "Implement login feature", "createdAt": created}),
        (WorkItemType.TASK, {
            "id": "T-102",
            "title": "Write documentation",
            "createdAt": created,
            "status": Status.IN_PROGRESS,
        }),
        (WorkItemType.TASK, {
            "id": "T-103",
            "title": "Fix bug in payment module",
            "createdAt": created,
            "status": Status.DONE,
            "priority": Priority.LOW,
            "doneAt": "2025-11-02T10:00:00Z",
            "deadline": "2025-11-01",
        }),
        (WorkItemType.TASK, {
            "id": "T-104",
            "title": "Prepare release notes",
            "createdAt": created,
            "description": "Draft release notes for version 2.0.",
            "priority": Priority.HIGH,
        }),
        (WorkItemType.SUBTASK, {"id": "ST-201", "title": "Subtask", "createdAt": created}),
        (WorkItemType.BUG, {"id": "B-301", "title": "Bug", "createdAt": created}),
    ]


def run_demo(controller: TaskController) -> None:
    for payload in invalid_payloads():
        controller.create_task(WorkItemType.TASK, payload)

    click.echo(SEPARATOR)
    click.echo("Validation errors:")
    controller.print_errors()
    controller.clear_errors()

    for item_type, payload in valid_payloads():
        controller.create_task(item_type, payload)

    controller.add_child_to_task("E-001", "S-001")
    controller.add_child_to_task("S-001", "T-101")
    controller.add_child_to_task("T-101", "T-102")
    controller.update_task("T-102", {"status": Status.DONE, "doneAt": utcnow()})
    controller.update_task("T-104", {"priority": Priority.MEDIUM, "title": "no"})

    controller.create_task(WorkItemType.TASK, {"id": "T-101", "title": "Duplicate ID", "createdAt": "2025-10-27"})
    controller.create_task("UNKNOWN_TYPE", {"id": "T-999", "title": "Unknown Type", "createdAt": "2025-10-27"})
    controller.update_task("NON_EXISTENT_ID", {"title": "Should Fail"})
    controller.update_task("T-101", {"id": "T-555"})
    controller.remove_task("NON_EXISTENT_ID")
    controller.add_child_to_task("NON_EXISTENT_PARENT", "T-101")
    controller.add_child_to_task("T-101", "NON_EXISTENT_CHILD")
    controller.add_child_to_task("ST-201", "T-101")
    controller.remove_child_from_task("NON_EXISTENT_PARENT", "T-101")
    controller.remove_child_from_task("B-301", "T-101")
    controller.remove_child_from_task("E-001", "T-104")

    click.echo(SEPARATOR)
    click.echo("Repository errors:")
    controller.print_errors()

    click.echo(SEPARATOR)
    click.echo("All tasks:")
    for task in controller.get_all_tasks():
        click.echo(task.describe())
        click.echo("-" * 29)


# PUBLIC_INTERFACE
@click.command()
@click.version_option(version=__version__, prog_name="tracker-demo")
@click.option(
    "--log-level",
    default=None,
    help="Logging level (defaults to TRACKER_LOG_LEVEL or INFO).",
)
def main(log_level: Optional[str]) -> None:
    """Showcase field validation and repository errors on an in-memory tracker."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    run_demo(TaskController(get_repository()))


if __name__ == "__main__":
    main()
