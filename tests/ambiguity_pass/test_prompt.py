from ambiguity_pass.models import DecisionContext
from ambiguity_pass.prompt import (
    SELF_AUDIT_HINT,
    PromptArgs,
    build_messages,
    build_repair_prompt,
)


def test_system_prompt_carries_schema_version_and_rules():
    system, _ = build_messages(PromptArgs(representation="x"))
    assert "REQUIRED FIELDS (v3)" in system
    assert '"schema_version": "3"' in system
    assert "ANTI-PERFORMATIVITY RULE" in system
    assert "{version}" not in system


def test_user_message_includes_representation_and_context():
    dc = DecisionContext(
        stakes="high",
        reversibility="low",
        detectability="hard",
        time_pressure="medium",
        alternatives_available=["manual review", "A/B test"],
        notes="board meeting",
    )
    _, user = build_messages(
        PromptArgs(
            representation="Churn fell 3% after the redesign.",
            context="Quarterly review deck",
            attempted_use="justification",
            decision_context=dc,
        )
    )
    assert "Churn fell 3% after the redesign." in user
    assert "Context:\nQuarterly review deck" in user
    assert "Attempted use: justification" in user
    assert "- stakes: high" in user
    assert "- detectability: hard" in user
    assert "- alternatives_available: manual review | A/B test" in user
    assert "- notes: board meeting" in user
    assert SELF_AUDIT_HINT not in user


def test_defaults_render_as_unknown():
    _, user = build_messages(PromptArgs(representation="x"))
    assert "Attempted use: unknown" in user
    assert "- reversibility: unknown" in user
    assert "- alternatives_available: (none provided)" in user
    assert "Context:" not in user


def test_self_audit_hint_appended():
    _, user = build_messages(PromptArgs(representation="{}", self_audit=True))
    assert user.endswith(SELF_AUDIT_HINT)


def test_repair_prompt_names_problem():
    repaired = build_repair_prompt("original", "confidence.reliance_cap")
    assert repaired.startswith("original")
    assert "invalid (confidence.reliance_cap)" in repaired
    assert "STRICT JSON" in repaired
