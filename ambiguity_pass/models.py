from typing import Any, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from ambiguity_pass.errors import SchemaViolation

SCHEMA_VERSION = "3"

# Closed vocabularies. Order lives in ambiguity_pass.lattices.
AttemptedUse = Literal["exploration", "explanation", "decision_support", "justification", "unknown"]
UseTier = Literal["exploratory", "explanatory", "operational", "high_stakes"]
Stakes = Literal["low", "medium", "high", "unknown"]
Reversibility = Literal["low", "medium", "high", "unknown"]
Detectability = Literal["easy", "moderate", "hard", "unknown"]
TimePressure = Literal["low", "medium", "high", "unknown"]
AmbiguityType = Literal["semantic", "contextual", "mapping", "structural", "normative"]
AmbiguityPriority = Literal["primary", "secondary"]
RelianceLevel = Literal["very_low", "low", "medium", "high"]
RelianceCap = Literal["input_only", "supporting", "weight_bearing", "decisive"]
# Failure-mode grading is a closed three-point scale, distinct from the
# four-value decision-context axis.
FailureDetectability = Literal["easy", "moderate", "hard"]


class _Record(BaseModel):
    # "Missing" is represented as empty strings/lists; unknown keys are errors.
    model_config = ConfigDict(extra="forbid", frozen=True)


class Representation(_Record):
    raw: str = ""
    kind: str = ""
    short: str = ""


class IntendedUse(_Record):
    attempted_use: AttemptedUse = "unknown"
    earned_tier: UseTier = "exploratory"
    mismatch: StrictBool = False
    mismatch_reason: str = ""
    notes: str = ""
    alternatives: List[AttemptedUse] = Field(default_factory=list)


class DecisionContext(_Record):
    stakes: Stakes = "unknown"
    reversibility: Reversibility = "unknown"
    detectability: Detectability = "unknown"
    time_pressure: TimePressure = "unknown"
    alternatives_available: List[str] = Field(default_factory=list)
    notes: str = ""


class Scope(_Record):
    within: List[str] = Field(default_factory=list)
    outside: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)


class Ambiguity(_Record):
    type: AmbiguityType
    priority: AmbiguityPriority = "secondary"
    description: str = ""
    rationale: str = ""
    signals: List[str] = Field(default_factory=list)
    remediation: List[str] = Field(default_factory=list)


class Confidence(_Record):
    reliance: RelianceLevel = "very_low"
    reliance_cap: RelianceCap = "input_only"
    rationale: str = ""
    verification_steps: List[str] = Field(default_factory=list)
    safeguards: List[str] = Field(default_factory=list)
    what_would_raise: List[str] = Field(default_factory=list)
    what_would_lower: List[str] = Field(default_factory=list)


class FailureMode(_Record):
    mode: str = ""
    impact: str = ""
    detectability: FailureDetectability = "hard"
    mitigations: List[str] = Field(default_factory=list)
    fallback: List[str] = Field(default_factory=list)


class JudgmentHandoff(_Record):
    unresolved: List[str] = Field(default_factory=list)
    owner: str = ""
    next_questions: List[str] = Field(default_factory=list)


class Meta(_Record):
    generated_at_iso: str = ""
    model: str = ""
    warnings: List[str] = Field(default_factory=list)
    gates_applied: List[str] = Field(default_factory=list)
    schema_version: str = SCHEMA_VERSION


class CalibrationRecord(_Record):
    """One calibrated trust profile for one representation, one run."""

    representation: Representation = Field(default_factory=Representation)
    intended_use: IntendedUse = Field(default_factory=IntendedUse)
    decision_context: DecisionContext = Field(default_factory=DecisionContext)
    scope: Scope = Field(default_factory=Scope)
    ambiguities: List[Ambiguity] = Field(default_factory=list)
    confidence: Confidence = Field(default_factory=Confidence)
    failure_modes: List[FailureMode] = Field(default_factory=list)
    judgment_handoff: JudgmentHandoff = Field(default_factory=JudgmentHandoff)
    meta: Meta = Field(default_factory=Meta)


def _error_paths(exc: ValidationError) -> List[str]:
    paths: List[str] = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        if path not in paths:
            paths.append(path)
    return paths


def validate_record(data: Union[CalibrationRecord, dict, str, bytes, Any]) -> CalibrationRecord:
    """
    Validate an arbitrary candidate against the record schema.

    Accepts a mapping, a JSON document (str/bytes) or an existing record (which
    is dumped and re-validated, so a record built with model_copy(update=...)
    is checked too). Raises SchemaViolation naming every offending path.
    """
    try:
        if isinstance(data, CalibrationRecord):
            return CalibrationRecord.model_validate(data.model_dump())
        if isinstance(data, (str, bytes, bytearray)):
            return CalibrationRecord.model_validate_json(data)
        return CalibrationRecord.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolation(_error_paths(exc), exc.errors(include_url=False)) from exc


def validate_decision_context(data: Union[DecisionContext, dict, Any]) -> DecisionContext:
    try:
        if isinstance(data, DecisionContext):
            return data
        return DecisionContext.model_validate(data)
    except ValidationError as exc:
        paths = ["decision_context." + p if p != "<root>" else "decision_context" for p in _error_paths(exc)]
        raise SchemaViolation(paths, exc.errors(include_url=False)) from exc


def to_json(record: CalibrationRecord) -> str:
    """Canonical pretty-printed JSON; every field is present."""
    return record.model_dump_json(indent=2)


__all__ = [
    "SCHEMA_VERSION",
    "Representation",
    "IntendedUse",
    "DecisionContext",
    "Scope",
    "Ambiguity",
    "Confidence",
    "FailureMode",
    "JudgmentHandoff",
    "Meta",
    "CalibrationRecord",
    "validate_record",
    "validate_decision_context",
    "to_json",
]
