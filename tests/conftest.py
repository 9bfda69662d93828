import copy
import os
import sys

import pytest

# Ensure repository root is on sys.path for package imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


BASE_CANDIDATE = {
    "representation": {
        "raw": "Onboarding completion tracks thirty-day retention for self-serve accounts.",
        "kind": "claim",
        "short": "Onboarding completion tracks retention",
    },
    "intended_use": {
        "attempted_use": "exploration",
        "earned_tier": "operational",
        "mismatch": False,
        "mismatch_reason": "",
        "notes": "",
        "alternatives": [],
    },
    "decision_context": {
        "stakes": "low",
        "reversibility": "high",
        "detectability": "easy",
        "time_pressure": "low",
        "alternatives_available": ["retention cohort"],
        "notes": "",
    },
    "scope": {
        "within": ["planning follow-up analysis"],
        "outside": ["final budget decisions"],
        "assumptions": ["tracking is stable"],
    },
    "ambiguities": [],
    "confidence": {
        "reliance": "medium",
        "reliance_cap": "supporting",
        "rationale": "One input among several.",
        "verification_steps": ["check X"],
        "safeguards": ["monitor Y"],
        "what_would_raise": [],
        "what_would_lower": [],
    },
    "failure_modes": [
        {
            "mode": "Correlation driven by account size",
            "impact": "Misallocated onboarding effort",
            "detectability": "moderate",
            "mitigations": ["segment by plan"],
            "fallback": ["revert onboarding flow"],
        }
    ],
    "judgment_handoff": {
        "unresolved": ["which segment matters"],
        "owner": "PM",
        "next_questions": ["is the effect causal?"],
    },
    "meta": {
        "generated_at_iso": "",
        "model": "",
        "warnings": [],
        "gates_applied": [],
        "schema_version": "3",
    },
}


def build_candidate(**sections):
    """Deep-copy the base candidate; dict overrides merge into a section, anything else replaces it."""
    data = copy.deepcopy(BASE_CANDIDATE)
    for name, value in sections.items():
        if isinstance(value, dict):
            data[name].update(copy.deepcopy(value))
        else:
            data[name] = copy.deepcopy(value)
    return data


def build_context(**axes):
    ctx = {
        "stakes": "low",
        "reversibility": "high",
        "detectability": "easy",
        "time_pressure": "low",
        "alternatives_available": ["retention cohort"],
        "notes": "",
    }
    ctx.update(axes)
    return ctx


@pytest.fixture
def make_candidate():
    return build_candidate


@pytest.fixture
def make_context():
    return build_context


@pytest.fixture(autouse=True)
def repo_root():
    return ROOT
