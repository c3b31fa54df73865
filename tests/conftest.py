from __future__ import annotations

import pytest

from tracker.controller import TaskController
from tracker.repositories import InMemoryTaskRepository
from tracker.settings import Settings


@pytest.fixture
def repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def controller(repo: InMemoryTaskRepository) -> TaskController:
    return TaskController(repo)


@pytest.fixture
def settings() -> Settings:
    return Settings(backend="memory", log_level="INFO", date_format="%Y-%m-%d", label_width=16)
