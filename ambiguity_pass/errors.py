"""
Error taxonomy for the Ambiguity Pass.

Only SchemaViolation can originate inside the gate core. MissingCredential and
TransportFailure belong to the oracle client; InputError to the CLI/I/O layer.
Policy clamps and advisory warnings are NOT errors and are recorded in-band on
the record (meta.gates_applied / meta.warnings).
"""

from typing import Any, Dict, List, Optional, Sequence


class AmbiguityPassError(Exception):
    """Base class for every error the package raises on purpose."""


class SchemaViolation(AmbiguityPassError):
    """
    A candidate (or gated) record failed a structural, type or enum check.

    Attributes:
        paths: dotted field paths of every offending field, e.g.
            "failure_modes.0.detectability". "<root>" when the whole
            document is unusable (not JSON, not an object).
        errors: the underlying pydantic error dicts, when available.
    """

    def __init__(
        self,
        paths: Sequence[str],
        errors: Optional[List[Dict[str, Any]]] = None,
        message: Optional[str] = None,
    ):
        self.paths = list(paths)
        self.errors = errors or []
        if message is None:
            details = []
            for err in self.errors[:5]:
                loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
                details.append(f"{loc}: {err.get('msg', 'invalid')}")
            message = "Schema violation at " + ", ".join(self.paths or ["<root>"])
            if details:
                message += " (" + "; ".join(details) + ")"
        super().__init__(message)

    @property
    def path(self) -> str:
        return self.paths[0] if self.paths else "<root>"


class MissingCredential(AmbiguityPassError):
    """The HTTP oracle was asked to run without an API key."""


class TransportFailure(AmbiguityPassError):
    """The oracle call failed after retries or returned an unusable envelope."""


class InputError(AmbiguityPassError):
    """No representation text could be read from args, file or stdin."""


__all__ = [
    "AmbiguityPassError",
    "SchemaViolation",
    "MissingCredential",
    "TransportFailure",
    "InputError",
]
