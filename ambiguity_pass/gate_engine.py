"""
Decision Calibration Gate

Validates, clamps and audits an oracle-proposed calibration record against the
reliance policy before anything downstream may trust or display it.

The gate is a linear pipeline of pure passes. Each pass takes the full record
and returns a new full record; nothing is mutated in place. Passes can only
LOWER reliance and reliance_cap (ceilings, never targets), inject defaults
into empty mandatory fields, or append to meta.gates_applied / meta.warnings.

Pass order:
    0. context binding       caller-supplied decision context + provenance
    1. mismatch              attempted use vs earned tier
    2. tier cap              earned tier -> cap ceiling
    3. context ceilings      stakes/detectability/reversibility -> ceilings
    4. anti-performativity   decisive needs detection AND recovery
    4b. cap-bound reliance   reliance may not outrun its cap
    5. scope defaults        within/outside are never empty
    6. cue warnings          language cues without matching ambiguity type
    7. detectability check   hard context vs easily detected failures

Appends are de-duplicated, so gating an already-gated record with the same
context is a no-op.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ambiguity_pass.lattices import (
    CAP_ORDER,
    DETECTABILITY_ORDER,
    RELIANCE_ORDER,
    REVERSIBILITY_ORDER,
    STAKES_ORDER,
    TIER_ORDER,
    at_least,
    at_most,
    exceeds,
    min_by_order,
)
from ambiguity_pass.models import (
    SCHEMA_VERSION,
    CalibrationRecord,
    DecisionContext,
    validate_decision_context,
    validate_record,
)

logger = logging.getLogger(__name__)

# Minimum tier an attempted use requires.
REQUIRED_TIER = {
    "exploration": "exploratory",
    "explanation": "explanatory",
    "decision_support": "operational",
    "justification": "high_stakes",
    "unknown": "exploratory",
}

# Maximum cap an earned tier permits. No tier unlocks "decisive" by itself.
TIER_CAP = {
    "exploratory": "input_only",
    "explanatory": "supporting",
    "operational": "weight_bearing",
    "high_stakes": "weight_bearing",
}

# Tiers whose ceiling is the top ordinary cap; a stated "decisive" on these
# is judged by the anti-performativity pass instead of the tier table.
DECISIVE_ELIGIBLE_TIERS = ("operational", "high_stakes")

# Highest reliance each cap can carry.
CAP_RELIANCE_CEILING = {
    "input_only": "low",
    "supporting": "medium",
    "weight_bearing": "high",
    "decisive": "high",
}

# (within, outside) boundary statements injected when the oracle left one empty.
SCOPE_DEFAULTS = {
    "input_only": (
        "idea generation only",
        "final decisions or irreversible actions",
    ),
    "supporting": (
        "one input among several in a human-reviewed decision",
        "sole basis for a decision or for justifying one after the fact",
    ),
    "weight_bearing": (
        "load-bearing input to a decision once the listed verification steps pass",
        "overriding contrary evidence or skipping verification",
    ),
    "decisive": (
        "deciding directly while monitoring and the named fallback are in place",
        "use after a detection signal fires or without the named fallback",
    ),
}

# (cue name, pattern over lower-cased raw text, ambiguity type that answers it, warning)
CUE_RULES: Tuple[Tuple[str, "re.Pattern[str]", str, str], ...] = (
    (
        "normative",
        re.compile(r"\b(should|prioriti[sz]e[sd]?|better|must|acceptable)\b"),
        "normative",
        "Normative language detected (should/prioritize/better/must/acceptable) "
        "but no 'normative' ambiguity is listed.",
    ),
    (
        "metric",
        re.compile(r"\bkpis?\b|%|\bprobabili(?:ty|ties|stic)\b|\bscor(?:e|es|ed|ing)\b|\brank(?:s|ed|ing)?\b"),
        "mapping",
        "Metric/quantitative language detected (kpi/%/probability/score/rank) "
        "but no 'mapping' ambiguity is listed.",
    ),
    (
        "summary",
        re.compile(r"\btl;\s?dr\b|\bsummary\b|\bpost-?mortem\b"),
        "structural",
        "Summary language detected (tl;dr/summary/postmortem) "
        "but no 'structural' ambiguity is listed.",
    ),
)


class GateResult(NamedTuple):
    """Gated record plus the trail entries and warnings THIS run appended."""

    record: CalibrationRecord
    gates_applied: List[str]
    warnings: List[str]


@dataclass(frozen=True)
class GateInputs:
    decision_context: DecisionContext
    requested_cap: str
    generated_at_iso: Optional[str] = None
    model: Optional[str] = None


GatePass = Callable[[CalibrationRecord, GateInputs], CalibrationRecord]


def _append_unique(existing: Sequence[str], entries: Iterable[str]) -> List[str]:
    merged = list(existing)
    for entry in entries:
        if entry and entry not in merged:
            merged.append(entry)
    return merged


def append_meta(
    record: CalibrationRecord,
    gates: Iterable[str] = (),
    warnings: Iterable[str] = (),
    **meta_changes,
) -> CalibrationRecord:
    meta = record.meta
    meta = meta.model_copy(
        update={
            "gates_applied": _append_unique(meta.gates_applied, gates),
            "warnings": _append_unique(meta.warnings, warnings),
            **meta_changes,
        }
    )
    return record.model_copy(update={"meta": meta})


def _update(record: CalibrationRecord, section: str, **changes) -> CalibrationRecord:
    part = getattr(record, section).model_copy(update=changes)
    return record.model_copy(update={section: part})


def has_recovery_path(record: CalibrationRecord) -> bool:
    """True if any fallback, mitigation or safeguard is named anywhere."""
    if record.confidence.safeguards:
        return True
    return any(f.fallback or f.mitigations for f in record.failure_modes)


def decisive_blockers(record: CalibrationRecord, dc: DecisionContext) -> List[str]:
    """Reasons the anti-performativity predicate fails; empty means decisive is permitted."""
    blockers = []
    if not at_most(dc.detectability, "moderate", DETECTABILITY_ORDER):
        blockers.append(f"detectability is {dc.detectability} (needs easy or moderate)")
    if not at_most(dc.reversibility, "medium", REVERSIBILITY_ORDER):
        blockers.append(f"reversibility is {dc.reversibility} (needs high or medium)")
    if not record.confidence.verification_steps:
        blockers.append("no verification_steps")
    if not has_recovery_path(record):
        blockers.append("no fallback, mitigation or safeguard")
    return blockers


def _context_label(dc: DecisionContext) -> str:
    return f"stakes={dc.stakes}, detectability={dc.detectability}, reversibility={dc.reversibility}"


def bind_context(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    dc = inputs.decision_context
    gates = []
    if record.decision_context != dc:
        changed = [
            f"{name} {getattr(record.decision_context, name)!r} -> {getattr(dc, name)!r}"
            for name in DecisionContext.model_fields
            if getattr(record.decision_context, name) != getattr(dc, name)
        ]
        gates.append("context_binding: decision_context replaced with caller-supplied values (" + "; ".join(changed) + ")")
        record = record.model_copy(update={"decision_context": dc})
    provenance = {}
    if inputs.generated_at_iso is not None:
        provenance["generated_at_iso"] = inputs.generated_at_iso
    if inputs.model is not None:
        provenance["model"] = inputs.model
    return append_meta(record, gates=gates, **provenance)


def check_mismatch(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    use = record.intended_use
    required = REQUIRED_TIER[use.attempted_use]
    if exceeds(required, use.earned_tier, TIER_ORDER):
        mismatch = True
        reason = (
            f"attempted use '{use.attempted_use}' requires tier '{required}' "
            f"but the representation earned '{use.earned_tier}'"
        )
    else:
        mismatch = False
        reason = ""
    if mismatch == use.mismatch and reason == use.mismatch_reason:
        return record
    record = _update(record, "intended_use", mismatch=mismatch, mismatch_reason=reason)
    gate = f"mismatch: set mismatch={str(mismatch).lower()}"
    if reason:
        gate += f" ({reason})"
    return append_meta(record, gates=[gate])


def clamp_to_tier(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    tier = record.intended_use.earned_tier
    cap = record.confidence.reliance_cap
    if cap == "decisive" and tier in DECISIVE_ELIGIBLE_TIERS:
        return record
    ceiling = TIER_CAP[tier]
    clamped = min_by_order(cap, ceiling, CAP_ORDER)
    if clamped == cap:
        return record
    record = _update(record, "confidence", reliance_cap=clamped)
    return append_meta(record, gates=[f"tier_cap: reliance_cap {cap} -> {clamped} (earned_tier={tier})"])


def context_ceilings(dc: DecisionContext) -> List[Tuple[Optional[str], Optional[str]]]:
    """
    (cap ceiling, reliance ceiling) rules triggered by the decision context.

    Rules overlap on purpose; the caller applies all of them in order with min,
    so a later rule may still tighten what an earlier one set. "unknown" counts
    as the risky side of every axis.
    """
    stakes_high = at_least(dc.stakes, "high", STAKES_ORDER)
    det_hard = at_least(dc.detectability, "hard", DETECTABILITY_ORDER)
    rev_low = at_least(dc.reversibility, "low", REVERSIBILITY_ORDER)

    rules: List[Tuple[Optional[str], Optional[str]]] = []
    if stakes_high and det_hard and rev_low:
        rules.append(("input_only", "very_low"))
    if stakes_high and (det_hard or rev_low):
        rules.append(("supporting", "low"))
    if dc.stakes == "medium" and det_hard and rev_low:
        rules.append(("supporting", None))
    return rules


def clamp_to_context(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    dc = inputs.decision_context
    label = _context_label(dc)
    gates = []
    cap = record.confidence.reliance_cap
    reliance = record.confidence.reliance
    for cap_ceiling, reliance_ceiling in context_ceilings(dc):
        if cap_ceiling is not None:
            lowered = min_by_order(cap, cap_ceiling, CAP_ORDER)
            if lowered != cap:
                gates.append(f"context_ceiling: reliance_cap {cap} -> {lowered} ({label})")
                cap = lowered
        if reliance_ceiling is not None:
            lowered = min_by_order(reliance, reliance_ceiling, RELIANCE_ORDER)
            if lowered != reliance:
                gates.append(f"context_ceiling: reliance {reliance} -> {lowered} ({label})")
                reliance = lowered
    if not gates:
        return record
    record = _update(record, "confidence", reliance_cap=cap, reliance=reliance)
    return append_meta(record, gates=gates)


def enforce_anti_performativity(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    cap = record.confidence.reliance_cap
    if cap != "decisive" and inputs.requested_cap != "decisive":
        return record
    blockers = decisive_blockers(record, inputs.decision_context)
    if not blockers:
        return record
    warning = "reliance_cap='decisive' blocked by the anti-performativity rule: " + "; ".join(blockers) + "."
    if cap != "decisive":
        # An earlier pass already lowered it; still say why decisive was refused.
        return append_meta(record, warnings=[warning])
    record = _update(record, "confidence", reliance_cap="weight_bearing")
    gate = "anti_performativity: reliance_cap decisive -> weight_bearing (" + "; ".join(blockers) + ")"
    return append_meta(record, gates=[gate], warnings=[warning])


def bound_reliance_by_cap(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    cap = record.confidence.reliance_cap
    reliance = record.confidence.reliance
    lowered = min_by_order(reliance, CAP_RELIANCE_CEILING[cap], RELIANCE_ORDER)
    if lowered == reliance:
        return record
    record = _update(record, "confidence", reliance=lowered)
    return append_meta(record, gates=[f"reliance_cap_bound: reliance {reliance} -> {lowered} (reliance_cap={cap})"])


def fill_scope_defaults(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    cap = record.confidence.reliance_cap
    within_default, outside_default = SCOPE_DEFAULTS[cap]
    changes = {}
    gates = []
    if not record.scope.within:
        changes["within"] = [within_default]
        gates.append(f"scope_default: scope.within <- {within_default!r} (reliance_cap={cap})")
    if not record.scope.outside:
        changes["outside"] = [outside_default]
        gates.append(f"scope_default: scope.outside <- {outside_default!r} (reliance_cap={cap})")
    if not changes:
        return record
    record = _update(record, "scope", **changes)
    return append_meta(record, gates=gates)


def warn_on_cues(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    text = record.representation.raw.lower()
    listed = {a.type for a in record.ambiguities}
    warnings = [
        message
        for _name, pattern, answered_by, message in CUE_RULES
        if answered_by not in listed and pattern.search(text)
    ]
    if not warnings:
        return record
    return append_meta(record, warnings=warnings)


def cross_check_detectability(record: CalibrationRecord, inputs: GateInputs) -> CalibrationRecord:
    if record.decision_context.detectability != "hard":
        return record
    easy = [f.mode or "(unnamed)" for f in record.failure_modes if f.detectability == "easy"]
    if not easy:
        return record
    warning = (
        "decision_context.detectability is hard but failure mode(s) are graded easy to detect: "
        + ", ".join(easy)
        + ". Explain the difference or regrade."
    )
    return append_meta(record, warnings=[warning])


GATE_PASSES: Tuple[GatePass, ...] = (
    bind_context,
    check_mismatch,
    clamp_to_tier,
    clamp_to_context,
    enforce_anti_performativity,
    bound_reliance_by_cap,
    fill_scope_defaults,
    warn_on_cues,
    cross_check_detectability,
)


def gate(
    record,
    decision_context,
    *,
    generated_at_iso: Optional[str] = None,
    model: Optional[str] = None,
) -> GateResult:
    """
    Run every policy pass over a candidate record.

    Args:
        record: CalibrationRecord or raw candidate (dict / JSON); validated first.
        decision_context: the context the oracle was prompted with.
        generated_at_iso: provenance timestamp to stamp on meta, if given.
        model: provenance model identifier to stamp on meta, if given.

    Returns:
        GateResult with the schema-valid, policy-compliant record and the trail
        entries / warnings appended by this run.

    Raises:
        SchemaViolation: the candidate, the context or (should it ever happen)
            the gated output is not schema-valid.
    """
    record = validate_record(record)
    dc = validate_decision_context(decision_context)
    inputs = GateInputs(
        decision_context=dc,
        requested_cap=record.confidence.reliance_cap,
        generated_at_iso=generated_at_iso,
        model=model,
    )
    gates_before = len(record.meta.gates_applied)
    warnings_before = len(record.meta.warnings)

    for gate_pass in GATE_PASSES:
        record = gate_pass(record, inputs)

    record = append_meta(record, schema_version=SCHEMA_VERSION)
    record = validate_record(record)

    new_gates = record.meta.gates_applied[gates_before:]
    new_warnings = record.meta.warnings[warnings_before:]
    for entry in new_gates:
        logger.debug("gate applied: %s", entry)
    logger.info(
        "Gated record: cap=%s reliance=%s, %d gate(s), %d warning(s)",
        record.confidence.reliance_cap,
        record.confidence.reliance,
        len(new_gates),
        len(new_warnings),
    )
    return GateResult(record=record, gates_applied=new_gates, warnings=new_warnings)


__all__ = [
    "REQUIRED_TIER",
    "TIER_CAP",
    "CAP_RELIANCE_CEILING",
    "SCOPE_DEFAULTS",
    "GateResult",
    "GATE_PASSES",
    "gate",
    "has_recovery_path",
    "decisive_blockers",
    "context_ceilings",
]
