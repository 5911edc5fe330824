"""Command-line front end: send one prompt, print the event stream."""
from typing import List
import asyncio
import json
import os
import sys

import click

from todo_agent.application.websocket.schema.events import (
    BaseEvent, TextEvent, ToolEvent, UsageEvent
)
from todo_agent.domain.errors import TodoAgentError
from todo_agent.domain.orchestration.core.main_agent import AgentOrchestrator
from todo_agent.infrastructure.config import Settings
from todo_agent.infrastructure.observability.logging import setup_logging


def render_event(event: BaseEvent, as_json: bool = False) -> List[str]:
    """Lines to print for one event"""
    if as_json:
        return [json.dumps(event.model_dump(mode="json", exclude={"timestamp"}), ensure_ascii=False)]
    if isinstance(event, TextEvent):
        return [event.text]
    if isinstance(event, ToolEvent):
        return [f"  ⚙ {event.name}"]
    if isinstance(event, UsageEvent):
        return [f"  tokens: in={event.input} out={event.output}"]
    # result text repeats the final assistant text; done prints nothing
    return []


async def run_prompt(orchestrator: AgentOrchestrator, prompt: str, as_json: bool) -> None:
    async for event in orchestrator.stream_agent(prompt):
        for line in render_event(event, as_json):
            click.echo(line)


@click.command()
@click.argument("prompt", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Print one JSON event per line.")
@click.option("--db-path", default=None, help="SQLite database file for the task store.")
@click.option("--model", default=None, help="Model selector passed to the agent.")
def main(prompt: tuple, as_json: bool, db_path: str, model: str) -> None:
    """Send PROMPT to the todo agent and stream its reply."""

    settings = Settings.from_env()
    overrides = {k: v for k, v in {"db_path": db_path, "model": model}.items() if v}
    if overrides:
        settings = settings.model_copy(update=overrides)
    # Logs go to stdout as well; keep them quiet unless asked for
    setup_logging(
        settings.log_level if os.environ.get("LOG_LEVEL") else "WARNING",
        settings.log_format,
        service_name="todo-agent-cli",
    )

    try:
        asyncio.run(run_prompt(AgentOrchestrator(settings=settings), " ".join(prompt), as_json))
    except TodoAgentError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
