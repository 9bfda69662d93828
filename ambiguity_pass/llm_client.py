import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ambiguity_pass.config import Settings, get_settings
from ambiguity_pass.errors import MissingCredential, TransportFailure

logger = logging.getLogger(__name__)

# Deterministic, schema-valid candidate returned by FakeLLM when no response is scripted.
FAKE_CANDIDATE: Dict[str, Any] = {
    "representation": {
        "raw": "Weekly active users rose 12% after the onboarding change.",
        "kind": "metric",
        "short": "WAU +12% after onboarding change",
    },
    "intended_use": {
        "attempted_use": "decision_support",
        "earned_tier": "operational",
        "mismatch": False,
        "mismatch_reason": "",
        "notes": "",
        "alternatives": ["explanation"],
    },
    "decision_context": {
        "stakes": "medium",
        "reversibility": "medium",
        "detectability": "moderate",
        "time_pressure": "medium",
        "alternatives_available": ["retention cohort"],
        "notes": "",
    },
    "scope": {
        "within": ["prioritising follow-up experiments"],
        "outside": ["claiming the change caused long-term retention"],
        "assumptions": ["tracking did not change in the same week"],
    },
    "ambiguities": [
        {
            "type": "mapping",
            "priority": "primary",
            "description": "WAU may not track the value users get.",
            "rationale": "Could optimise for visits rather than outcomes.",
            "signals": ["WAU up while retention flat"],
            "remediation": ["compare against the 4-week retention cohort"],
        }
    ],
    "confidence": {
        "reliance": "medium",
        "reliance_cap": "supporting",
        "rationale": "Useful as one input; attribution is unverified.",
        "verification_steps": ["compare to retention cohort"],
        "safeguards": ["monitor regressions"],
        "what_would_raise": ["holdout confirms the lift"],
        "what_would_lower": ["seasonality explains the lift"],
    },
    "failure_modes": [
        {
            "mode": "Metric improves while user outcomes worsen",
            "impact": "Roll out a change that hurts retention",
            "detectability": "moderate",
            "mitigations": ["track an outcome metric"],
            "fallback": ["pause rollout"],
        }
    ],
    "judgment_handoff": {
        "unresolved": ["acceptable tradeoff between engagement and retention"],
        "owner": "PM",
        "next_questions": ["what outcome matters most this quarter?"],
    },
    "meta": {
        "generated_at_iso": "",
        "model": "",
        "warnings": [],
        "gates_applied": [],
        "schema_version": "",
    },
}


class LLMProvider:
    """Oracle capability: given a prompt (and system message) return a best-effort candidate or fail."""

    model: str = "unknown"

    async def complete(self, prompt: str, *, system: Optional[str] = None, **kwargs) -> str:
        raise NotImplementedError


class FakeLLM(LLMProvider):
    """Deterministic oracle for tests and offline runs. Scripted responses are returned in order."""

    def __init__(self, response: Optional[str] = None, responses: Optional[List[str]] = None, model: str = "fake-llm"):
        self.response = response
        self.responses = list(responses or [])
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, prompt: str, *, system: Optional[str] = None, **kwargs) -> str:
        self.calls.append({"prompt": prompt, "system": system, **kwargs})
        if self.responses:
            return self.responses.pop(0)
        if self.response:
            return self.response
        return json.dumps(FAKE_CANDIDATE)


class OpenAILLM(LLMProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait_seconds: float = 1.0,
    ):
        settings = settings or get_settings()
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.base_url = base_url or settings.OPENAI_BASE_URL
        self.model = model or settings.AMBIGUITY_MODEL
        self.timeout = settings.AMBIGUITY_TIMEOUT_MS / 1000
        self.max_tokens = settings.AMBIGUITY_MAX_TOKENS
        self.temperature = settings.AMBIGUITY_TEMPERATURE
        self.max_attempts = settings.AMBIGUITY_MAX_ATTEMPTS
        self.transport = transport
        self.retry_wait_seconds = retry_wait_seconds

    async def complete(self, prompt: str, *, system: Optional[str] = None, **kwargs) -> str:
        if not self.api_key:
            raise MissingCredential("Missing OPENAI_API_KEY (set it in .env or your shell).")
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }
        payload.update(kwargs)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_fixed(self.retry_wait_seconds),
                retry=retry_if_exception_type(httpx.HTTPError),
                reraise=True,
            ):
                with attempt:
                    async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                        resp = await client.post(self.base_url, headers=headers, json=payload)
                        resp.raise_for_status()
                        data = resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Oracle request failed after {self.max_attempts} attempt(s): {e}")
            raise TransportFailure(f"Oracle request failed: {e}") from e
        except ValueError as e:
            raise TransportFailure(f"Oracle returned a non-JSON envelope: {e}") from e
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransportFailure("Oracle response did not contain message content") from e
