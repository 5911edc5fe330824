"""Tests that the operating instructions carry every rule the agent relies on."""

from todo_agent.domain.prompt.behavior_contract import (
    BEHAVIOR_CONTRACT,
    SCHEMA_SQL,
    SYSTEM_PROMPT,
    build_behavior_contract,
)
from todo_agent.domain.tool.tool_registry import tool_registry


def test_render_is_deterministic():
    assert build_behavior_contract().render() == build_behavior_contract().render()
    assert SYSTEM_PROMPT == BEHAVIOR_CONTRACT.render()


def test_sections_keyed_by_concern_in_order():
    assert list(BEHAVIOR_CONTRACT.sections()) == [
        "role", "tools", "schema", "capabilities", "workflow",
        "output_format", "best_practices", "edge_cases", "examples", "closing",
    ]


def test_schema_creation_is_idempotent():
    assert SCHEMA_SQL.startswith("CREATE TABLE IF NOT EXISTS todos")
    assert SCHEMA_SQL in SYSTEM_PROMPT
    steps = " ".join(BEHAVIOR_CONTRACT.procedure("initialize").steps)
    assert "list_tables" in steps
    assert "before any data-modifying action" in steps


def test_validity_sets_and_defaults():
    assert BEHAVIOR_CONTRACT.statuses == ("pending", "in_progress", "completed")
    assert BEHAVIOR_CONTRACT.priorities == ("low", "medium", "high")
    assert "default to 'medium' and 'pending' respectively" in SYSTEM_PROMPT


def test_every_intent_has_a_procedure():
    intents = [p.intent for p in BEHAVIOR_CONTRACT.procedures]
    assert intents == ["initialize", "add", "list", "update", "complete", "delete", "search"]


def test_default_listing_order():
    steps = " ".join(BEHAVIOR_CONTRACT.procedure("list").steps)
    assert "high → medium → low" in steps
    assert "created_at DESC" in steps


def test_completion_updates_both_fields_in_one_query():
    steps = BEHAVIOR_CONTRACT.procedure("complete").steps
    single = [s for s in steps if "single `write_query`" in s]
    assert single
    assert "status = 'completed'" in single[0]
    assert "completed_at = CURRENT_TIMESTAMP" in single[0]


def test_destructive_and_ambiguity_policies():
    delete_steps = " ".join(BEHAVIOR_CONTRACT.procedure("delete").steps)
    assert "explicit confirmation" in delete_steps
    assert any("ask the user to clarify" in p for p in BEHAVIOR_CONTRACT.best_practices)


def test_failure_disclosure_policy():
    assert any("suggest a fix" in p and "do not keep retrying" in p
               for p in BEHAVIOR_CONTRACT.best_practices)
    assert any("offer to recreate the table" in e for e in BEHAVIOR_CONTRACT.edge_cases)


def test_output_format_example():
    example = BEHAVIOR_CONTRACT.output_format
    assert example.startswith("📋 Your Tasks:")
    assert example.index("🔴 [1]") < example.index("🟡 [2]") < example.index("🟢 [3]")
    assert "Description: Update API docs for v2.0" in example
    assert "Created: 2024-01-15" in example


def test_tool_catalog_matches_registry():
    tools_section = BEHAVIOR_CONTRACT.sections()["tools"]
    for capability in tool_registry:
        assert f"**{capability.name}**" in tools_section
