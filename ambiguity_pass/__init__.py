"""
Ambiguity Pass package.

Annotates a representation (claim, metric, summary, model output) with a
calibrated trust profile. An LLM oracle proposes a candidate record; the
deterministic Decision Calibration Gate validates, clamps and audits it before
anything downstream may rely on it.

ARCHITECTURE:
- models.py: record schema and the validation boundary (SchemaViolation)
- lattices.py: ordinal vocabularies and min_by_order
- gate_engine.py: ordered policy passes (the gate)
- linter.py: advisory, non-mutating checks
- llm_client.py / prompt.py: oracle capability and prompt construction
- auditor.py: prompt -> oracle -> validate -> gate -> lint pipeline
- render.py, cli.py, api.py: outer surfaces
"""

from .errors import AmbiguityPassError, InputError, MissingCredential, SchemaViolation, TransportFailure
from .gate_engine import GateResult, gate
from .lattices import min_by_order
from .linter import LintResult, lint
from .models import SCHEMA_VERSION, CalibrationRecord, DecisionContext, to_json, validate_record

__all__ = [
    "AmbiguityPassError",
    "InputError",
    "MissingCredential",
    "SchemaViolation",
    "TransportFailure",
    "GateResult",
    "gate",
    "min_by_order",
    "LintResult",
    "lint",
    "SCHEMA_VERSION",
    "CalibrationRecord",
    "DecisionContext",
    "to_json",
    "validate_record",
]
