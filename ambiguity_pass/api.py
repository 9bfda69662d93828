import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ambiguity_pass.auditor import AmbiguityAuditor, AuditRequest
from ambiguity_pass.errors import MissingCredential, SchemaViolation, TransportFailure
from ambiguity_pass.llm_client import OpenAILLM
from ambiguity_pass.logger import setup_logging
from ambiguity_pass.models import AttemptedUse, CalibrationRecord, DecisionContext

logger = logging.getLogger(__name__)

router = APIRouter()


class AuditPayload(BaseModel):
    representation: str = Field(..., min_length=1)
    context: str = ""
    attempted_use: AttemptedUse = "unknown"
    decision_context: DecisionContext = Field(default_factory=DecisionContext)
    self_audit: bool = False


class GatePayload(BaseModel):
    candidate: Dict[str, Any]
    decision_context: DecisionContext = Field(default_factory=DecisionContext)


def get_auditor() -> AmbiguityAuditor:
    return AmbiguityAuditor(llm=OpenAILLM())


def _schema_error(e: SchemaViolation) -> HTTPException:
    return HTTPException(status_code=422, detail={"message": str(e), "paths": e.paths})


@router.post("/audit", response_model=CalibrationRecord)
async def audit(payload: AuditPayload, auditor: AmbiguityAuditor = Depends(get_auditor)):
    request = AuditRequest(
        representation=payload.representation,
        context=payload.context,
        attempted_use=payload.attempted_use,
        decision_context=payload.decision_context,
        self_audit=payload.self_audit,
    )
    try:
        return await auditor.run(request)
    except SchemaViolation as e:
        logger.error(f"Audit failed schema validation: {e}")
        raise _schema_error(e)
    except (MissingCredential, TransportFailure) as e:
        logger.error(f"Audit oracle unavailable: {e}")
        raise HTTPException(status_code=502, detail="Oracle unavailable")


@router.post("/gate", response_model=CalibrationRecord)
def gate_candidate(payload: GatePayload, auditor: AmbiguityAuditor = Depends(get_auditor)):
    try:
        return auditor.calibrate(payload.candidate, payload.decision_context, model="offline")
    except SchemaViolation as e:
        raise _schema_error(e)


def create_app(configure_logging: bool = True) -> FastAPI:
    if configure_logging:
        setup_logging()
    app = FastAPI(title="Ambiguity Pass")
    app.include_router(router)
    return app
