from dataclasses import dataclass, field
from typing import Tuple

from ambiguity_pass.models import SCHEMA_VERSION, DecisionContext

SYSTEM_PROMPT = """
You perform an "Ambiguity Pass": annotate representations to calibrate epistemic trust.
You do NOT decide truth. You do NOT enforce correctness. You do NOT claim certainty.

Return STRICT JSON ONLY matching the schema below. No markdown, no prose outside the JSON object.
Missing values are empty strings or empty arrays, never null and never omitted.

NON-NEGOTIABLES:
- Never output "true/false", "correct/incorrect", or final verdicts.
- Avoid moralizing and authority tone.
- Keep bullets concrete, checkable, and use-case oriented.

REQUIRED FIELDS (v{version}):
- intended_use.earned_tier in {{exploratory, explanatory, operational, high_stakes}}
- confidence.reliance_cap in {{input_only, supporting, weight_bearing, decisive}}
- decision_context fields populated; if unknown, use "unknown" (do not invent).
- confidence.verification_steps: include 1-3 concrete checks whenever possible.
- failure_modes[].fallback: include 1-2 fallback/rollback actions where applicable.

ANTI-PERFORMATIVITY RULE:
If you cannot name BOTH:
(1) how failure would be detected, and
(2) what we do when detection happens (fallback / rollback / stop),
then confidence.reliance_cap MUST NOT be "decisive".

AMBIGUITY SELECTION RULE:
- Include 0-3 ambiguity items maximum; mark at most one as "primary".
- If tempted to list many, merge or select the dominant ones.
- It is acceptable to include 0 ambiguity types when the representation is tightly scoped and directly verifiable now.

CLASSIFICATION AIDS:
- Contextual vs scope:
  * contextual ambiguity: the situation changed (stakes/incentives/users/environment) OR the original context is unclear
  * scope creep: the job changed (explore -> decide, explain -> justify, monitor -> incentivize); describe it in scope fields
- Mapping vs structural:
  * mapping ambiguity: "does this output/metric correspond to the underlying thing?"
  * structural ambiguity: "even if it did, the representation cannot express what matters / omits key factors"

CALIBRATION NOTE:
High stakes does NOT automatically imply low reliance.
If the representation is directly verifiable now, tightly scoped, and failures are quickly detectable + reversible,
reliance may be high, with verification_steps and safeguards emphasized.
If intent/context is unclear OR the claim is not verifiable here, treat contextual/mapping ambiguity as likely and reduce reliance.

SCHEMA:
{{
  "representation": {{"raw": str, "kind": str, "short": str}},
  "intended_use": {{"attempted_use": "exploration|explanation|decision_support|justification|unknown",
                   "earned_tier": "exploratory|explanatory|operational|high_stakes",
                   "mismatch": bool, "mismatch_reason": str, "notes": str, "alternatives": [attempted_use]}},
  "decision_context": {{"stakes": "low|medium|high|unknown", "reversibility": "low|medium|high|unknown",
                       "detectability": "easy|moderate|hard|unknown", "time_pressure": "low|medium|high|unknown",
                       "alternatives_available": [str], "notes": str}},
  "scope": {{"within": [str], "outside": [str], "assumptions": [str]}},
  "ambiguities": [{{"type": "semantic|contextual|mapping|structural|normative", "priority": "primary|secondary",
                   "description": str, "rationale": str, "signals": [str], "remediation": [str]}}],
  "confidence": {{"reliance": "very_low|low|medium|high", "reliance_cap": "input_only|supporting|weight_bearing|decisive",
                 "rationale": str, "verification_steps": [str], "safeguards": [str],
                 "what_would_raise": [str], "what_would_lower": [str]}},
  "failure_modes": [{{"mode": str, "impact": str, "detectability": "easy|moderate|hard",
                     "mitigations": [str], "fallback": [str]}}],
  "judgment_handoff": {{"unresolved": [str], "owner": str, "next_questions": [str]}},
  "meta": {{"generated_at_iso": "", "model": "", "warnings": [str], "gates_applied": [], "schema_version": "{version}"}}
}}

STYLE:
- Prefer short, concrete bullets.
- Avoid jargon unless necessary.
- Do not imply this is a complete analysis.
""".strip()

SELF_AUDIT_HINT = """
THIS PASS IS A SELF-AUDIT of a prior Ambiguity Pass output.
Focus on:
- overreach (unscoped claims, implied finality)
- hidden normative assumptions
- missing ambiguity types
- where judgment is laundered as certainty
- scope too broad / reliance_cap too high
- missing verification/fallback pathways
Do not just restate the prior audit; critique it.
""".strip()

REPAIR_SUFFIX = (
    "\n\nYour previous output was invalid ({problem}). "
    "Return STRICT JSON only, matching the schema exactly."
)


@dataclass
class PromptArgs:
    representation: str
    context: str = ""
    attempted_use: str = "unknown"
    decision_context: DecisionContext = field(default_factory=DecisionContext)
    self_audit: bool = False


def _axis(value: str) -> str:
    value = (value or "").strip()
    return value or "unknown"


def build_messages(args: PromptArgs) -> Tuple[str, str]:
    """Return (system, user) messages for one Ambiguity Pass."""
    dc = args.decision_context
    system = SYSTEM_PROMPT.format(version=SCHEMA_VERSION)
    alternatives = " | ".join(dc.alternatives_available) if dc.alternatives_available else "(none provided)"

    lines = [
        "Representation to audit (verbatim):",
        "---",
        args.representation,
        "---",
        "",
    ]
    if args.context.strip():
        lines += ["Context:", args.context.strip(), ""]
    lines += [
        f"Attempted use: {_axis(args.attempted_use)}",
        "",
        "Decision context:",
        f"- stakes: {_axis(dc.stakes)}",
        f"- reversibility: {_axis(dc.reversibility)}",
        f"- detectability: {_axis(dc.detectability)}",
        f"- time_pressure: {_axis(dc.time_pressure)}",
        f"- alternatives_available: {alternatives}",
    ]
    if dc.notes.strip():
        lines.append(f"- notes: {dc.notes.strip()}")
    lines += [
        "",
        "Notes:",
        "- If the representation looks like a slogan/argument, treat it as such.",
        "- If it looks like a metric/model output, mapping ambiguity is likely.",
        "- If it looks like a summary, structural omission is likely.",
        "- Include only ambiguity types that are truly present (0-3).",
    ]
    if args.self_audit:
        lines += ["", SELF_AUDIT_HINT]
    return system, "\n".join(lines).strip()


def build_repair_prompt(user: str, problem: str) -> str:
    return user + REPAIR_SUFFIX.format(problem=problem)
