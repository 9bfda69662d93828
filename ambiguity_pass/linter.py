"""
Heuristic linter: soft, post-gate checks that only ever append advisory
warnings. Record content is never changed. Some checks echo hard gate rules
(decisive without detection/recovery) as informational findings.
"""

import logging
from typing import List, NamedTuple

from ambiguity_pass.gate_engine import append_meta, has_recovery_path
from ambiguity_pass.models import CalibrationRecord

logger = logging.getLogger(__name__)

MAX_AMBIGUITIES = 3


class LintResult(NamedTuple):
    record: CalibrationRecord
    warnings: List[str]


def lint_warnings(record: CalibrationRecord) -> List[str]:
    """Deterministic checks for the failure patterns oracles fall into most."""
    w: List[str] = []
    dc = record.decision_context
    confidence = record.confidence
    cap = confidence.reliance_cap

    if len(record.ambiguities) > MAX_AMBIGUITIES:
        w.append(
            f"Too many ambiguity items ({len(record.ambiguities)} > {MAX_AMBIGUITIES}). "
            "Pick the dominant 1-3 or merge related ones."
        )

    primaries = [a for a in record.ambiguities if a.priority == "primary"]
    if len(primaries) > 1:
        w.append(f"{len(primaries)} ambiguities marked primary. Keep at most one primary.")

    if not confidence.verification_steps:
        w.append("No verification_steps provided. Add 1-3 concrete checks.")

    if not record.failure_modes:
        w.append("No failure_modes listed. Add at least 1 plausible failure mode.")

    if cap == "decisive":
        if dc.detectability in ("hard", "unknown"):
            w.append("reliance_cap='decisive' but decision_context.detectability is hard/unknown. Reconsider the cap.")
        if not has_recovery_path(record):
            w.append("reliance_cap='decisive' but no fallback/rollback/stop plan is present. Reconsider the cap.")

    if dc.stakes == "high" and dc.detectability in ("hard", "unknown") and cap in ("weight_bearing", "decisive"):
        w.append(
            "High stakes + hard/unknown detectability while reliance_cap is weight_bearing/decisive. "
            "Consider downgrading the cap or adding stronger monitoring + fallback."
        )

    if dc.stakes == "high" and not dc.alternatives_available:
        w.append(
            "High stakes with no alternatives_available provided. "
            "Consider adding an independent check/second source."
        )

    return w


def lint(record: CalibrationRecord) -> LintResult:
    """Append lint findings to meta.warnings (de-duplicated) and return them."""
    before = len(record.meta.warnings)
    linted = append_meta(record, warnings=lint_warnings(record))
    added = linted.meta.warnings[before:]
    if added:
        logger.info("Linter appended %d warning(s)", len(added))
    return LintResult(record=linted, warnings=added)


__all__ = ["LintResult", "lint", "lint_warnings", "MAX_AMBIGUITIES"]
