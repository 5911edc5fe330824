import pytest

from todo_agent.infrastructure.config import Settings
from todo_agent.infrastructure.observability.logging import metrics


@pytest.fixture
def settings():
    return Settings(db_path="test-todo.db", filesystem_root="/tmp/todo-work")


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
