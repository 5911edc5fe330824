from typing import Any, Dict, Iterable, List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def default(cls) -> "TaskStatus":
        return cls.PENDING

    @classmethod
    def coerce(cls, value: Any) -> "TaskStatus":
        """Return the matching status, or the default for anything invalid"""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.default()


class TaskPriority(str, Enum):
    """Task priority levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def default(cls) -> "TaskPriority":
        return cls.MEDIUM

    @classmethod
    def coerce(cls, value: Any) -> "TaskPriority":
        """Return the matching priority, or the default for anything invalid"""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.default()

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @property
    def marker(self) -> str:
        return _PRIORITY_MARKERS[self]


_PRIORITY_RANK = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}

_PRIORITY_MARKERS = {
    TaskPriority.HIGH: "🔴",
    TaskPriority.MEDIUM: "🟡",
    TaskPriority.LOW: "🟢",
}


class Task(BaseModel):
    """A row of the ``todos`` table as the agent presents it"""
    id: int = Field(description="Store-assigned identifier")
    title: str = Field(min_length=1, description="Task title")
    description: Optional[str] = Field(None, description="Optional details")
    status: TaskStatus = Field(default_factory=TaskStatus.default)
    priority: TaskPriority = Field(default_factory=TaskPriority.default)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_completion(self) -> "Task":
        # completed_at is set if and only if the task is completed
        if (self.status == TaskStatus.COMPLETED) != (self.completed_at is not None):
            raise ValueError("completed_at must be set exactly when status is 'completed'")
        return self

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        """Build a task from a store row, substituting defaults for invalid values"""
        data = dict(row)
        data["status"] = TaskStatus.coerce(data.get("status"))
        data["priority"] = TaskPriority.coerce(data.get("priority"))
        if data.get("description") == "":
            data["description"] = None
        return cls(**{k: v for k, v in data.items() if v is not None})

    def complete(self, when: Optional[datetime] = None) -> "Task":
        """Return a copy transitioned to completed, stamping completed_at once"""
        if self.status == TaskStatus.COMPLETED:
            return self
        return self.model_copy(update={
            "status": TaskStatus.COMPLETED,
            "completed_at": when or datetime.utcnow(),
        })


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Default listing order: priority high to low, then newest first"""
    by_newest = sorted(tasks, key=lambda t: t.created_at, reverse=True)
    return sorted(by_newest, key=lambda t: t.priority.rank)


def format_task(task: Task) -> str:
    """Render one task with the output template used in conversation"""
    lines = [
        f"{task.priority.marker} [{task.id}] {task.priority.value.capitalize()} Priority - {task.title}",
        f"   Status: {task.status.value}",
    ]
    if task.description:
        lines.append(f"   Description: {task.description}")
    lines.append(f"   Created: {task.created_at.date().isoformat()}")
    return "\n".join(lines)


def format_task_list(tasks: Iterable[Task], header: str = "📋 Your Tasks:") -> str:
    """Render several tasks in default order under a header"""
    blocks = [format_task(task) for task in sort_tasks(tasks)]
    return "\n\n".join([header] + blocks)
