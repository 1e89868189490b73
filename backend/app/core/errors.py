# File: backend/app/core/errors.py
# Version: v0.2.0
"""
Domain errors raised by the planning engine and its collaborators.

Propagation rules
-----------------
- Malformed matches / zero-length nodes are filtered locally (never raised).
- `JunctionDesignFailed` invalidates the owning assembly only; the planner keeps going.
- `NoCoveringAssemblyError`, `SearchToolError` and `DesignToolError` are terminal for a run
  and surface to the caller (CLI exits 1, API maps to an HTTP error).

v0.2.0
- `NoMatchesError` is a `NoCoveringAssemblyError`: an empty search is reported as
  "no covering assembly" to callers that only care about the outcome.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class PlanningError(RuntimeError):
    """Base class for every structured error of the planner."""

    def __init__(self, message: str, *, target_id: Optional[str] = None):
        super().__init__(message)
        self.target_id = target_id


class NoCoveringAssemblyError(PlanningError):
    """Search (or fill) exhausted its bound without a complete circular covering."""

    def __init__(
        self,
        message: str,
        *,
        target_id: Optional[str] = None,
        reasons: Optional[List[str]] = None,
    ):
        super().__init__(message, target_id=target_id)
        self.reasons = list(reasons or [])


class NoMatchesError(NoCoveringAssemblyError):
    """The match source returned nothing usable for the target."""


class NoValidCutsiteError(PlanningError):
    """Enzyme digestion found no recognition site, or the sequence is too short."""


class InvalidRecognitionSyntaxError(PlanningError, ValueError):
    """A recognition sequence lacks exactly one '^' and exactly one '_' marker."""


class JunctionDesignFailed(PlanningError):
    """Primer design could not satisfy the homology bounds for a junction."""

    def __init__(
        self,
        message: str,
        *,
        junction: Optional[str] = None,
        reasons: Optional[Dict[str, int]] = None,
    ):
        super().__init__(message)
        self.junction = junction
        self.reasons = dict(reasons or {})

    def formatted_reasons(self) -> str:
        if not self.reasons:
            return "n/a"
        return ", ".join(f"{k} x{v}" for k, v in sorted(self.reasons.items(), key=lambda kv: -kv[1]))


class SearchToolError(PlanningError):
    """The similarity-search tool failed (no database reachable, crash, bad output)."""


class DesignToolError(PlanningError):
    """The primer-design tool itself failed (as opposed to finding no valid pair)."""


__all__ = [
    "PlanningError",
    "NoCoveringAssemblyError",
    "NoMatchesError",
    "NoValidCutsiteError",
    "InvalidRecognitionSyntaxError",
    "JunctionDesignFailed",
    "SearchToolError",
    "DesignToolError",
]
