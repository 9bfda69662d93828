import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ambiguity_pass.errors import MissingCredential, SchemaViolation, TransportFailure
from ambiguity_pass.gate_engine import append_meta, gate
from ambiguity_pass.linter import lint
from ambiguity_pass.llm_client import FakeLLM, LLMProvider
from ambiguity_pass.metrics import (
    audit_failures_total,
    audit_latency_seconds,
    audits_total,
    oracle_repairs_total,
    record_gate_trail,
)
from ambiguity_pass.models import CalibrationRecord, DecisionContext, to_json, validate_record
from ambiguity_pass.prompt import PromptArgs, build_messages, build_repair_prompt

logger = logging.getLogger(__name__)

SELF_AUDIT_CONTEXT = (
    "Self-audit this Ambiguity Pass output. Identify overreach, hidden normative assumptions, "
    "unscoped claims, and where judgment is laundered as certainty. Recommend scope limits and "
    "reliance cap corrections."
)

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def strip_code_fence(text: str) -> str:
    """Oracles sometimes wrap JSON in a markdown fence; unwrap it, leave anything else alone."""
    match = _FENCE.match(text or "")
    return match.group(1) if match else (text or "")


def bind_request(
    record: CalibrationRecord,
    representation: Optional[str] = None,
    attempted_use: Optional[str] = None,
) -> Tuple[CalibrationRecord, List[str]]:
    """
    Pin the requester's text and attempted use onto an oracle candidate.

    The mismatch and cue passes read these fields, so they must hold what the
    caller sent, not what the oracle echoed back. An "unknown" attempted use
    states no intent and leaves the oracle's reading in place.
    """
    gates: List[str] = []
    if representation is not None and record.representation.raw.strip() != representation.strip():
        gates.append("context_binding: representation.raw replaced with caller-supplied text")
        record = record.model_copy(
            update={"representation": record.representation.model_copy(update={"raw": representation})}
        )
    use = record.intended_use
    if attempted_use and attempted_use != "unknown" and use.attempted_use != attempted_use:
        gates.append(
            f"context_binding: intended_use.attempted_use {use.attempted_use!r} -> {attempted_use!r}"
        )
        record = record.model_copy(
            update={"intended_use": use.model_copy(update={"attempted_use": attempted_use})}
        )
    if not gates:
        return record, gates
    return append_meta(record, gates=gates), gates


@dataclass
class AuditRequest:
    representation: str
    context: str = ""
    attempted_use: str = "unknown"
    decision_context: DecisionContext = field(default_factory=DecisionContext)
    self_audit: bool = False


class AmbiguityAuditor:
    """
    Full pipeline: prompt -> oracle -> schema validation -> gate -> lint.

    The oracle is untrusted. Its output gets one repair re-ask when it is not
    schema-valid; a second violation is fatal (SchemaViolation). Everything the
    gate and linter do is recorded on the returned record.
    """

    def __init__(self, llm: Optional[LLMProvider] = None, clock: Optional[Callable[[], str]] = None):
        self.llm = llm or FakeLLM()
        self.clock = clock or utc_now_iso

    async def run(self, request: AuditRequest) -> CalibrationRecord:
        audits_total.labels(kind="audit").inc()
        start = time.perf_counter()
        try:
            record = await self.audit_once(
                PromptArgs(
                    representation=request.representation,
                    context=request.context,
                    attempted_use=request.attempted_use,
                    decision_context=request.decision_context,
                )
            )
            if request.self_audit:
                audits_total.labels(kind="self_audit").inc()
                record = await self.audit_once(
                    PromptArgs(
                        representation=to_json(record),
                        context=SELF_AUDIT_CONTEXT,
                        attempted_use="unknown",
                        decision_context=request.decision_context,
                        self_audit=True,
                    ),
                    representation=request.representation,
                    attempted_use=request.attempted_use,
                )
            return record
        except SchemaViolation:
            audit_failures_total.labels(reason="schema_violation").inc()
            raise
        except MissingCredential:
            audit_failures_total.labels(reason="missing_credential").inc()
            raise
        except TransportFailure:
            audit_failures_total.labels(reason="transport_failure").inc()
            raise
        finally:
            audit_latency_seconds.observe(time.perf_counter() - start)

    async def audit_once(
        self,
        args: PromptArgs,
        representation: Optional[str] = None,
        attempted_use: Optional[str] = None,
    ) -> CalibrationRecord:
        """
        One oracle round trip, gated against the caller's facts.

        representation / attempted_use default to the prompt's own; the
        self-audit pass passes the original request's values since its prompt
        carries the first record's JSON instead.
        """
        candidate = await self.propose(args)
        return self.calibrate(
            candidate,
            args.decision_context,
            representation=args.representation if representation is None else representation,
            attempted_use=args.attempted_use if attempted_use is None else attempted_use,
        )

    async def propose(self, args: PromptArgs) -> CalibrationRecord:
        """Ask the oracle for a candidate and validate it (one repair attempt)."""
        system, user = build_messages(args)
        output = await self.llm.complete(user, system=system)
        try:
            return validate_record(strip_code_fence(output))
        except SchemaViolation as e:
            logger.warning(f"Oracle output invalid, attempting repair: {e}")
            oracle_repairs_total.inc()
            problem = str(e)
        repaired = await self.llm.complete(build_repair_prompt(user, problem), system=system)
        try:
            return validate_record(strip_code_fence(repaired))
        except SchemaViolation as e2:
            logger.error(f"Oracle repair failed: {e2}")
            raise

    def calibrate(
        self,
        candidate,
        decision_context,
        model: Optional[str] = None,
        representation: Optional[str] = None,
        attempted_use: Optional[str] = None,
    ) -> CalibrationRecord:
        """Gate and lint an already-proposed candidate (no oracle involved)."""
        candidate, bound = bind_request(validate_record(candidate), representation, attempted_use)
        gated = gate(
            candidate,
            decision_context,
            generated_at_iso=self.clock(),
            model=model or getattr(self.llm, "model", "unknown"),
        )
        linted = lint(gated.record)
        record_gate_trail(
            bound + gated.gates_applied,
            gated.warnings,
            linted.warnings,
            linted.record.confidence.reliance_cap,
        )
        return validate_record(linted.record)
