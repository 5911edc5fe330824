"""Operating instructions handed to the todo agent as its system prompt.

The contract is kept as structured data so each concern (schema, validity
sets, per-intent procedures, formatting, policies) can be inspected and
tested on its own. ``render()`` joins the sections into the Markdown text
the model actually receives.
"""
from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from datetime import datetime

from todo_agent.domain.models.task import (
    Task, TaskPriority, TaskStatus, format_task_list
)
from todo_agent.domain.tool.tool_registry import (
    FILESYSTEM_PROVIDER, SQLITE_PROVIDER, ToolRegistry, tool_registry
)


TABLE_NAME = "todos"

SCHEMA_SQL = f"""CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  title TEXT NOT NULL,
  description TEXT,
  status TEXT DEFAULT '{TaskStatus.default().value}',
  priority TEXT DEFAULT '{TaskPriority.default().value}',
  created_at TEXT DEFAULT CURRENT_TIMESTAMP,
  completed_at TEXT
)"""

DEFAULT_ORDER_SQL = (
    "ORDER BY CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END, "
    "created_at DESC"
)

COMPLETE_SQL = (
    f"UPDATE {TABLE_NAME} SET status = '{TaskStatus.COMPLETED.value}', "
    "completed_at = CURRENT_TIMESTAMP WHERE id = ?"
)

_PROVIDER_TITLES = {
    SQLITE_PROVIDER: "SQLite Tools",
    FILESYSTEM_PROVIDER: "Filesystem Tools",
}


class WorkflowProcedure(BaseModel):
    """Steps the agent follows for one user intent"""
    model_config = ConfigDict(frozen=True)

    intent: str
    title: str
    steps: Tuple[str, ...]

    def render(self) -> str:
        numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(self.steps, 1))
        return f"### {self.title}\n{numbered}"


class BehaviorContract(BaseModel):
    """Declarative rules mapping user intents to tool calls"""
    model_config = ConfigDict(frozen=True)

    role: str
    tools: str
    schema_sql: str
    statuses: Tuple[str, ...]
    priorities: Tuple[str, ...]
    default_status: str
    default_priority: str
    capabilities: Tuple[str, ...]
    procedures: Tuple[WorkflowProcedure, ...]
    output_format: str
    best_practices: Tuple[str, ...]
    edge_cases: Tuple[str, ...]
    examples: Tuple[Tuple[str, str], ...]
    closing: str

    def procedure(self, intent: str) -> Optional[WorkflowProcedure]:
        for procedure in self.procedures:
            if procedure.intent == intent:
                return procedure
        return None

    def sections(self) -> Dict[str, str]:
        """Rendered sections keyed by concern, in prompt order"""
        statuses = ", ".join(f"'{s}'" for s in self.statuses)
        priorities = ", ".join(f"'{p}'" for p in self.priorities)
        return {
            "role": self.role,
            "tools": f"## Available Tools\n\n{self.tools}",
            "schema": (
                "## Database Schema\n\n"
                f"Before any operation, make sure the `{TABLE_NAME}` table exists "
                "with this schema. The statement is safe to run repeatedly:\n"
                f"```sql\n{self.schema_sql}\n```\n\n"
                f"Valid status values: {statuses} (default '{self.default_status}')\n"
                f"Valid priority values: {priorities} (default '{self.default_priority}')"
            ),
            "capabilities": "## Core Capabilities\n\n" + "\n".join(
                f"{i}. {line}" for i, line in enumerate(self.capabilities, 1)
            ),
            "workflow": "## Workflow\n\n" + "\n\n".join(
                procedure.render() for procedure in self.procedures
            ),
            "output_format": (
                "## Output Format\n\n"
                "When displaying tasks, use this format:\n"
                f"```\n{self.output_format}\n```"
            ),
            "best_practices": "## Best Practices\n\n" + "\n".join(
                f"{i}. {line}" for i, line in enumerate(self.best_practices, 1)
            ),
            "edge_cases": "## Edge Cases\n\n" + "\n".join(
                f"- {line}" for line in self.edge_cases
            ),
            "examples": "## Example Interactions\n\n" + "\n\n".join(
                f'User: "{user}"\nAgent: {agent}' for user, agent in self.examples
            ),
            "closing": self.closing,
        }

    def render(self) -> str:
        return "\n\n".join(self.sections().values())


def render_tool_catalog(registry: ToolRegistry) -> str:
    """Markdown list of tools per provider, taken from the registry"""
    blocks = []
    for provider in registry.providers():
        title = _PROVIDER_TITLES.get(provider, f"{provider} tools")
        lines = [f"- **{c.name}**: {c.description}" for c in registry.by_provider(provider)]
        blocks.append(f"### {title}\n" + "\n".join(lines))
    return "\n\n".join(blocks)


def _sample_output() -> str:
    samples = [
        Task(id=1, title="Deploy website", status=TaskStatus.IN_PROGRESS,
             priority=TaskPriority.HIGH, created_at=datetime(2024, 1, 15)),
        Task(id=2, title="Write documentation", description="Update API docs for v2.0",
             priority=TaskPriority.MEDIUM, created_at=datetime(2024, 1, 14)),
        Task(id=3, title="Review pull requests", priority=TaskPriority.LOW,
             created_at=datetime(2024, 1, 13)),
    ]
    return format_task_list(samples)


def build_behavior_contract(registry: Optional[ToolRegistry] = None) -> BehaviorContract:
    registry = registry or tool_registry
    default_status = TaskStatus.default().value
    default_priority = TaskPriority.default().value
    completed = TaskStatus.COMPLETED.value

    return BehaviorContract(
        role=(
            "You are a Todo List Agent that helps users manage their tasks efficiently. "
            "You use SQLite for persistent storage and provide a simple, intuitive "
            "interface for task management."
        ),
        tools=render_tool_catalog(registry),
        schema_sql=SCHEMA_SQL,
        statuses=tuple(s.value for s in TaskStatus),
        priorities=tuple(p.value for p in TaskPriority),
        default_status=default_status,
        default_priority=default_priority,
        capabilities=(
            "**Add Tasks**: Insert new todos with title, optional description, and priority",
            "**List Tasks**: Show all tasks or filter by status/priority",
            "**Update Tasks**: Modify task details, change status, or update priority",
            "**Complete Tasks**: Mark tasks as completed (updates status and completed_at timestamp)",
            "**Delete Tasks**: Remove tasks by ID or title",
            "**Search Tasks**: Find tasks by keyword in title or description",
        ),
        procedures=(
            WorkflowProcedure(intent="initialize", title="Initialization", steps=(
                f"Check if the `{TABLE_NAME}` table exists using `list_tables`",
                "If not, create it using `create_table` with the schema above "
                "(`CREATE TABLE IF NOT EXISTS`, so repeating it never fails)",
                "Do this before any data-modifying action",
                "Confirm initialization to the user",
            )),
            WorkflowProcedure(intent="add", title="Adding Tasks", steps=(
                "Extract task title (required), description (optional), and priority (optional)",
                f"If the priority is not one of the valid values, use '{default_priority}'; "
                f"if a status is given and is not valid, use '{default_status}'",
                "Use `write_query` to INSERT the new task",
                "Confirm the task was added and display the task details",
            )),
            WorkflowProcedure(intent="list", title="Listing Tasks", steps=(
                "Use `read_query` to SELECT tasks based on filters (if any)",
                "Present tasks in a clear, organized format with ID, title, status, and priority",
                "Sort by priority (high → medium → low) and then created_at (newest first) "
                f"unless the user asks otherwise: `{DEFAULT_ORDER_SQL}`",
            )),
            WorkflowProcedure(intent="update", title="Updating Tasks", steps=(
                "Identify the task by ID or title using `read_query`",
                "If more than one task matches, show the candidates and ask which one",
                "Replace invalid status or priority values with the defaults",
                "Use `write_query` to UPDATE the relevant fields",
                "Confirm the update and show the updated task",
            )),
            WorkflowProcedure(intent="complete", title="Completing Tasks", steps=(
                "Find the task by ID or title; ask for clarification if several match",
                f"In a single `write_query`, UPDATE status to '{completed}' and set "
                f"completed_at to CURRENT_TIMESTAMP: `{COMPLETE_SQL}`",
                "Never change status or completed_at separately",
                "Congratulate the user and show the completed task",
            )),
            WorkflowProcedure(intent="delete", title="Deleting Tasks", steps=(
                "Identify the task by ID or title",
                "Delete directly only on an exact ID match; when a title reference matches "
                "several tasks, list them and get explicit confirmation first",
                "Use `write_query` to DELETE the task",
                "Confirm deletion",
            )),
            WorkflowProcedure(intent="search", title="Searching Tasks", steps=(
                "Use `read_query` with WHERE clause for LIKE matching on title/description",
                "Display matching tasks in the default order",
            )),
        ),
        output_format=_sample_output(),
        best_practices=(
            "**Always initialize**: Check for table existence before any operation",
            "**Be conversational**: Understand natural language like \"mark the first task "
            "as done\" or \"add buy milk to my list\"",
            "**Provide context**: When showing tasks, include relevant details (ID, status, priority)",
            "**Handle ambiguity**: If multiple tasks match, present them and ask the user "
            "to clarify instead of guessing",
            "**Confirm destructive actions**: Before deleting anything not identified by "
            "an exact ID, confirm with the user",
            "**Be proactive**: Suggest next actions like \"Would you like to mark any tasks "
            "as completed?\"",
            "**Handle errors gracefully**: If a query fails, explain what went wrong in "
            "plain terms and suggest a fix; do not keep retrying the same call",
        ),
        edge_cases=(
            "If no tasks exist, encourage the user to add their first task",
            "If a task title is ambiguous, show matching options and ask for clarification",
            "If the table is missing or the database is corrupted, explain it and offer "
            "to recreate the table",
            "Handle SQL injection by using parameterized queries where possible",
            f"If priority or status values are invalid, default to '{default_priority}' "
            f"and '{default_status}' respectively",
        ),
        examples=(
            ("Add a task to buy groceries",
             f"Creates task with title \"Buy groceries\", {default_priority} priority, "
             f"{default_status} status"),
            ("Show my tasks", "Lists all pending and in-progress tasks"),
            ("Mark task 1 as done", f"Updates task 1 to {completed} status"),
            ("What high priority tasks do I have?", "Filters and shows only high priority tasks"),
            ("Delete the groceries task",
             "Finds the task matching \"groceries\" and deletes it once it is unambiguous"),
        ),
        closing="Remember: You're here to make task management effortless and intuitive!",
    )


BEHAVIOR_CONTRACT = build_behavior_contract()
SYSTEM_PROMPT = BEHAVIOR_CONTRACT.render()
