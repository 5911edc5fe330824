"""Tests for the streaming orchestrator."""

import asyncio

import pytest
from claude_agent_sdk import AssistantMessage, ResultMessage, TextBlock

from fakes import FakeSession, assistant, result, summarize, text, tool_use
from todo_agent.domain.errors import AgentConfigurationError, AgentStreamError
from todo_agent.domain.orchestration.core.main_agent import AgentOrchestrator
from todo_agent.domain.tool.tool_registry import ALLOWED_TOOLS
from todo_agent.infrastructure.config import Settings
from todo_agent.infrastructure.observability.logging import metrics


async def collect(orchestrator, prompt="show my tasks"):
    return [event async for event in orchestrator.stream_agent(prompt)]


@pytest.mark.asyncio
async def test_zero_messages_yields_only_done(settings):
    session = FakeSession()
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [("done",)]
    assert session.closed == 1


@pytest.mark.asyncio
async def test_two_text_blocks(settings):
    session = FakeSession(assistant(text("A"), text("B")))
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [("text", "A"), ("text", "B"), ("done",)]


@pytest.mark.asyncio
async def test_usage_missing_output_defaults_to_zero(settings):
    session = FakeSession(assistant(usage={"input_tokens": 12, "output_tokens": 0}))
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [("usage", 12, 0), ("done",)]


@pytest.mark.asyncio
async def test_text_precedes_tool_in_same_message(settings):
    session = FakeSession(assistant(tool_use("mcp__sqlite__write_query"), text("Saving")))
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [
        ("text", "Saving"),
        ("tool", "mcp__sqlite__write_query"),
        ("done",),
    ]


@pytest.mark.asyncio
async def test_full_conversation_preserves_message_order(settings):
    session = FakeSession(
        {"type": "system", "subtype": "init"},
        assistant(text("Let me check."), tool_use("mcp__sqlite__list_tables"),
                  usage={"input_tokens": 100, "output_tokens": 20}),
        {"type": "user", "message": {"content": [{"type": "tool_result", "content": "todos"}]}},
        assistant(text("You have no tasks yet."), usage={"input_tokens": 150}),
        result("You have no tasks yet.", usage={"input_tokens": 250, "output_tokens": 35}),
    )
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [
        ("text", "Let me check."),
        ("tool", "mcp__sqlite__list_tables"),
        ("usage", 100, 20),
        ("text", "You have no tasks yet."),
        ("usage", 150, 0),
        ("result", "You have no tasks yet."),
        ("done",),
    ]
    session_ids = {event.session_id for event in events}
    assert len(session_ids) == 1 and None not in session_ids


@pytest.mark.asyncio
async def test_session_started_standalone_with_prompt(settings):
    session = FakeSession()
    await collect(AgentOrchestrator(settings, session), prompt="add buy milk")
    (prompt, options), = session.calls
    assert prompt == "add buy milk"
    assert set(options.mcp_servers) == {"sqlite", "filesystem"}
    assert options.allowed_tools == list(ALLOWED_TOOLS)
    assert options.max_turns == 50


@pytest.mark.asyncio
async def test_stream_is_lazy(settings):
    session = FakeSession(assistant(text("one")), assistant(text("two")))
    stream = AgentOrchestrator(settings, session).stream_agent("hi")
    assert session.calls == []

    first = await stream.__anext__()
    assert first.text == "one"
    assert session.yielded == 1
    await stream.aclose()


@pytest.mark.asyncio
async def test_transport_failure_emits_done_then_raises(settings):
    failure = ConnectionError("provider crashed")
    session = FakeSession(assistant(text("partial")), error=failure)
    events = []
    with pytest.raises(AgentStreamError) as exc_info:
        async for event in AgentOrchestrator(settings, session).stream_agent("hi"):
            events.append(event)
    assert summarize(events) == [("text", "partial"), ("done",)]
    assert exc_info.value.__cause__ is failure
    assert exc_info.value.session_id == events[-1].session_id
    assert session.closed == 1


@pytest.mark.asyncio
async def test_stream_cannot_be_restarted(settings):
    stream = AgentOrchestrator(settings, FakeSession(assistant(text("x")))).stream_agent("hi")
    events = [event async for event in stream]
    assert summarize(events) == [("text", "x"), ("done",)]
    assert [event async for event in stream] == []


@pytest.mark.asyncio
async def test_abandoning_stream_releases_session(settings):
    session = FakeSession(assistant(text("one")), assistant(text("two")), assistant(text("three")))
    stream = AgentOrchestrator(settings, session).stream_agent("hi")
    async for event in stream:
        break
    await stream.aclose()
    assert session.closed == 1
    assert session.yielded == 1


@pytest.mark.asyncio
async def test_idle_timeout_ends_stream(settings):
    settings = settings.model_copy(update={"idle_timeout_seconds": 0.05})
    session = FakeSession(assistant(text("thinking")), hang=True)
    events = []
    with pytest.raises(AgentStreamError):
        async for event in AgentOrchestrator(settings, session).stream_agent("hi"):
            events.append(event)
    assert summarize(events) == [("text", "thinking"), ("done",)]


@pytest.mark.asyncio
async def test_idle_timeout_is_wrapped_once(settings):
    settings = settings.model_copy(update={"idle_timeout_seconds": 0.05})
    session = FakeSession(hang=True)
    with pytest.raises(AgentStreamError) as exc_info:
        await collect(AgentOrchestrator(settings, session))
    assert str(exc_info.value) == "No message from agent session within 0.05s"
    assert isinstance(exc_info.value.__cause__, TimeoutError)
    assert session.closed == 1


@pytest.mark.asyncio
async def test_invalid_settings_fail_before_session():
    session = FakeSession()
    with pytest.raises(AgentConfigurationError):
        AgentOrchestrator(Settings.from_env({"TODO_AGENT_MAX_TURNS": "-1"}), session)
    assert session.calls == []


@pytest.mark.asyncio
async def test_concurrent_streams_are_independent(settings):
    first = FakeSession(assistant(text("first")))
    second = FakeSession(assistant(text("second")))
    a, b = await asyncio.gather(
        collect(AgentOrchestrator(settings, first)),
        collect(AgentOrchestrator(settings, second)),
    )
    assert summarize(a) == [("text", "first"), ("done",)]
    assert summarize(b) == [("text", "second"), ("done",)]
    assert a[0].session_id != b[0].session_id


@pytest.mark.asyncio
async def test_metrics_count_events_and_tokens(settings):
    session = FakeSession(assistant(text("hi"), usage={"input_tokens": 7, "output_tokens": 3}))
    await collect(AgentOrchestrator(settings, session))
    summary = metrics.get_metrics_summary()
    assert summary["events.text"] == 1
    assert summary["events.done"] == 1
    assert summary["tokens.input"] == 7
    assert summary["tokens.output"] == 3
    assert summary["latency.agent_stream"]["count"] == 1


@pytest.mark.asyncio
async def test_session_that_fails_to_start_still_ends_with_done(settings):
    def broken_factory(*, prompt, options):
        raise FileNotFoundError("claude CLI not installed")

    events = []
    with pytest.raises(AgentStreamError) as exc_info:
        async for event in AgentOrchestrator(settings, broken_factory).stream_agent("hi"):
            events.append(event)
    assert summarize(events) == [("done",)]
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


@pytest.mark.asyncio
async def test_result_usage_is_not_counted_twice(settings):
    session = FakeSession(
        AssistantMessage(
            content=[TextBlock(text="hi")],
            model="haiku",
            usage={"input_tokens": 100, "output_tokens": 20},
        ),
        ResultMessage(
            subtype="success",
            duration_ms=10,
            duration_api_ms=8,
            is_error=False,
            num_turns=1,
            session_id="s1",
            usage={"input_tokens": 100, "output_tokens": 20},
            result="hi",
        ),
    )
    events = await collect(AgentOrchestrator(settings, session))
    assert summarize(events) == [("text", "hi"), ("usage", 100, 20), ("result", "hi"), ("done",)]
    summary = metrics.get_metrics_summary()
    assert summary["tokens.input"] == 100
    assert summary["tokens.output"] == 20
