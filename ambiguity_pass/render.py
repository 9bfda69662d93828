"""Plain-text views of a validated calibration record."""

import re
from typing import List

from ambiguity_pass.models import CalibrationRecord

FOOTER = "Not a verdict. This scopes reliance; judgment remains yours."


def _bullets(items: List[str], indent: str = "  ") -> str:
    if not items:
        return f"{indent}(none)"
    return "\n".join(f"{indent}- {item}" for item in items)


def one_line(text: str, max_len: int = 140) -> str:
    flat = re.sub(r"\s+", " ", text or "").strip()
    return flat if len(flat) <= max_len else flat[: max_len - 3] + "..."


def render_friendly(record: CalibrationRecord) -> str:
    """Multi-section report for the person making the decision."""
    r = record
    lines: List[str] = ["Ambiguity Pass"]
    if r.representation.short.strip():
        lines.append(r.representation.short.strip())
    lines.append("")

    lines.append("1) What this is")
    kind = r.representation.kind.strip()
    lines.append(f"  {kind + ': ' if kind else ''}{one_line(r.representation.raw)}")
    lines.append("")

    use = r.intended_use
    lines.append("2) Intended use (right now)")
    lines.append(f"  {use.attempted_use} (earned tier: {use.earned_tier})")
    if use.mismatch:
        lines.append(f"  MISMATCH: {use.mismatch_reason}")
    if use.notes.strip():
        lines.append(f"  notes: {use.notes.strip()}")
    if use.alternatives:
        lines.append(f"  also plausible: {', '.join(use.alternatives)}")
    lines.append("")

    dc = r.decision_context
    lines.append("3) Decision context")
    lines.append(f"  stakes: {dc.stakes}")
    lines.append(f"  reversibility: {dc.reversibility}")
    lines.append(f"  detectability: {dc.detectability}")
    lines.append(f"  time pressure: {dc.time_pressure}")
    lines.append(f"  alternatives available: {'; '.join(dc.alternatives_available) or '(none)'}")
    if dc.notes.strip():
        lines.append(f"  notes: {dc.notes.strip()}")
    lines.append("")

    lines.append("4) Where it's safer vs risky")
    lines.append("  Safer for:")
    lines.append(_bullets(r.scope.within, "    "))
    lines.append("  Risky for:")
    lines.append(_bullets(r.scope.outside, "    "))
    if r.scope.assumptions:
        lines.append("  Assumptions:")
        lines.append(_bullets(r.scope.assumptions, "    "))
    lines.append("")

    lines.append("5) What's unclear")
    if not r.ambiguities:
        lines.append("  (no major ambiguity flagged)")
    for amb in r.ambiguities:
        marker = " [primary]" if amb.priority == "primary" else ""
        lines.append(f"  {amb.type}{marker}: {amb.description}")
        if amb.rationale:
            lines.append(f"    why it matters: {amb.rationale}")
        if amb.signals:
            lines.append(f"    signals: {'; '.join(amb.signals)}")
        if amb.remediation:
            lines.append(f"    do now: {'; '.join(amb.remediation)}")
    lines.append("")

    c = r.confidence
    lines.append("6) How much weight to put on it")
    lines.append(f"  Suggested reliance: {c.reliance}")
    lines.append(f"  Max reliance allowed: {c.reliance_cap}")
    if c.rationale.strip():
        lines.append(f"  {c.rationale.strip()}")
    for label, items in (
        ("verification steps", c.verification_steps),
        ("safeguards", c.safeguards),
        ("what would raise reliance", c.what_would_raise),
        ("what would lower reliance", c.what_would_lower),
    ):
        if items:
            lines.append(f"  {label}:")
            lines.append(_bullets(items, "    "))
    lines.append("")

    lines.append("7) What could go wrong")
    if not r.failure_modes:
        lines.append("  (none listed)")
    for f in r.failure_modes:
        lines.append(f"  - {f.mode} (detectability: {f.detectability})")
        lines.append(f"    impact: {f.impact}")
        if f.mitigations:
            lines.append(f"    mitigate: {'; '.join(f.mitigations)}")
        if f.fallback:
            lines.append(f"    fallback: {'; '.join(f.fallback)}")
    lines.append("")

    h = r.judgment_handoff
    lines.append("Judgment handoff")
    lines.append("  Unresolved:")
    lines.append(_bullets(h.unresolved, "    "))
    if h.owner.strip():
        lines.append(f"  who owns it: {h.owner.strip()}")
    lines.append("  Next questions:")
    lines.append(_bullets(h.next_questions, "    "))
    lines.append("")

    if r.meta.gates_applied:
        lines.append("Adjusted by policy gates:")
        lines.append(_bullets(r.meta.gates_applied))
        lines.append("")
    if r.meta.warnings:
        lines.append("Warnings:")
        lines.append(_bullets(r.meta.warnings))
        lines.append("")

    lines.append(FOOTER)
    return "\n".join(lines)


def render_technical(record: CalibrationRecord) -> str:
    """Field-by-field dump using schema names."""
    r = record
    lines: List[str] = ["Ambiguity Pass - Framework View", ""]

    lines.append("Representation:")
    lines.append(r.representation.raw.strip())
    if r.representation.kind.strip():
        lines.append(f"  kind: {r.representation.kind.strip()}")
    if r.representation.short.strip():
        lines.append(f"  short: {r.representation.short.strip()}")
    lines.append("")

    use = r.intended_use
    lines.append("Intended use:")
    lines.append(f"- attempted_use: {use.attempted_use}")
    lines.append(f"- earned_tier: {use.earned_tier}")
    lines.append(f"- mismatch: {str(use.mismatch).lower()}")
    if use.mismatch_reason:
        lines.append(f"- mismatch_reason: {use.mismatch_reason}")
    if use.notes.strip():
        lines.append(f"- notes: {use.notes.strip()}")
    if use.alternatives:
        lines.append(f"- alternatives: {', '.join(use.alternatives)}")
    lines.append("")

    dc = r.decision_context
    lines.append("Decision context:")
    lines.append(f"- stakes: {dc.stakes}")
    lines.append(f"- reversibility: {dc.reversibility}")
    lines.append(f"- detectability: {dc.detectability}")
    lines.append(f"- time_pressure: {dc.time_pressure}")
    lines.append(f"- alternatives_available:\n{_bullets(dc.alternatives_available)}")
    lines.append(f"- notes: {dc.notes.strip() or '(none)'}")
    lines.append("")

    lines.append("Scope:")
    lines.append(f"- within:\n{_bullets(r.scope.within)}")
    lines.append(f"- outside:\n{_bullets(r.scope.outside)}")
    lines.append(f"- assumptions:\n{_bullets(r.scope.assumptions)}")
    lines.append("")

    lines.append("Ambiguity types:")
    if not r.ambiguities:
        lines.append("- (none)")
    for amb in r.ambiguities:
        lines.append(f"- {amb.type} ({amb.priority})")
        lines.append(f"  - description: {amb.description}")
        lines.append(f"  - rationale: {amb.rationale}")
        lines.append(f"  - signals:\n{_bullets(amb.signals, '    ')}")
        lines.append(f"  - remediation:\n{_bullets(amb.remediation, '    ')}")
    lines.append("")

    c = r.confidence
    lines.append("Confidence / reliance:")
    lines.append(f"- reliance: {c.reliance}")
    lines.append(f"- reliance_cap: {c.reliance_cap}")
    lines.append(f"- rationale: {c.rationale}")
    lines.append(f"- verification_steps:\n{_bullets(c.verification_steps)}")
    lines.append(f"- safeguards:\n{_bullets(c.safeguards)}")
    lines.append(f"- what_would_raise:\n{_bullets(c.what_would_raise)}")
    lines.append(f"- what_would_lower:\n{_bullets(c.what_would_lower)}")
    lines.append("")

    lines.append("Known failure modes:")
    if not r.failure_modes:
        lines.append("- (none)")
    for f in r.failure_modes:
        lines.append(f"- mode: {f.mode}")
        lines.append(f"  - impact: {f.impact}")
        lines.append(f"  - detectability: {f.detectability}")
        lines.append(f"  - mitigations:\n{_bullets(f.mitigations, '    ')}")
        lines.append(f"  - fallback:\n{_bullets(f.fallback, '    ')}")
    lines.append("")

    h = r.judgment_handoff
    lines.append("Judgment handoff:")
    lines.append(f"- unresolved:\n{_bullets(h.unresolved)}")
    lines.append(f"- owner: {h.owner.strip() or '(unknown)'}")
    lines.append(f"- next_questions:\n{_bullets(h.next_questions)}")
    lines.append("")

    m = r.meta
    lines.append(f"meta.generated_at_iso: {m.generated_at_iso}")
    lines.append(f"meta.model: {m.model}")
    lines.append(f"meta.schema_version: {m.schema_version}")
    lines.append(f"meta.gates_applied:\n{_bullets(m.gates_applied)}")
    lines.append(f"meta.warnings:\n{_bullets(m.warnings)}")
    return "\n".join(lines)
