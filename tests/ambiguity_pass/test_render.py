from ambiguity_pass.gate_engine import gate
from ambiguity_pass.render import FOOTER, one_line, render_friendly, render_technical


def _gated(make_candidate, make_context, **sections):
    return gate(make_candidate(**sections), make_context(stakes="high", detectability="hard", reversibility="low")).record


def test_one_line():
    assert one_line("a\n  b\tc") == "a b c"
    long = one_line("x" * 200, max_len=20)
    assert len(long) == 20
    assert long.endswith("...")


def test_friendly_sections_in_order(make_candidate, make_context):
    text = render_friendly(_gated(make_candidate, make_context))
    headings = [
        "Ambiguity Pass",
        "1) What this is",
        "2) Intended use (right now)",
        "3) Decision context",
        "4) Where it's safer vs risky",
        "5) What's unclear",
        "6) How much weight to put on it",
        "7) What could go wrong",
        "Judgment handoff",
        "Adjusted by policy gates:",
    ]
    positions = [text.index(h) for h in headings]
    assert positions == sorted(positions)
    assert "Max reliance allowed: input_only" in text
    assert "(no major ambiguity flagged)" in text
    assert text.endswith(FOOTER)


def test_friendly_shows_mismatch(make_candidate, make_context):
    record = _gated(make_candidate, make_context, intended_use={"attempted_use": "justification"})
    assert "MISMATCH: attempted use 'justification' requires tier 'high_stakes'" in render_friendly(record)


def test_friendly_omits_empty_trail(make_candidate, make_context):
    record = gate(make_candidate(), make_context()).record
    text = render_friendly(record)
    assert "Adjusted by policy gates:" not in text
    assert "Warnings:" not in text


def test_technical_uses_field_names(make_candidate, make_context):
    text = render_technical(_gated(make_candidate, make_context))
    assert text.startswith("Ambiguity Pass - Framework View")
    assert "- reliance_cap: input_only" in text
    assert "- stakes: high" in text
    assert "meta.schema_version: 3" in text
    assert "context_ceiling: reliance_cap supporting -> input_only" in text
