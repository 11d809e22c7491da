"""
Typed definitions for rain area API responses.

GET /v2/rainarea?dt=YYYYMMDDHHmm returns one radar slice. We only read the id and the
coverage summary; everything else (radar geometry, dimensions) is kept as the opaque raw body.
On upstream data errors the body is {"error": "..."} with a 200 status.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypedDict

from rainwatch.core.errors import DomainError


class CoveragePercentage(TypedDict, total=False):
    all: float  # whole radar area
    sg: float  # Singapore only


class RainAreaBody(TypedDict, total=False):
    id: str  # slot id as string, e.g. "202610191405"
    dt: int
    coverage_percentage: CoveragePercentage
    error: str


@dataclass(frozen=True)
class TransportResponse:
    """What one HTTP GET produced: parsed JSON body (or {}) and whether the status was 2xx."""
    body: dict[str, Any]
    status_ok: bool
    status_code: int = 200


@dataclass(frozen=True)
class CoverageReading:
    """One fetched slice. Produced once per successful fetch; stored at most once per id."""
    id: int
    all_coverage: float
    sg_coverage: float
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "CoverageReading":
        """Build from a rain area body. Raises DomainError on an 'error' field or missing id/coverage."""
        if not isinstance(body, dict):
            raise DomainError("Rain area body is not an object")
        if body.get("error"):
            raise DomainError(str(body["error"]))
        coverage = body.get("coverage_percentage") or {}
        try:
            slot = int(body["id"])
            all_coverage = float(coverage["all"])
            sg_coverage = float(coverage["sg"])
        except (KeyError, TypeError, ValueError) as e:
            raise DomainError(f"Malformed rain area body: {e!r}") from e
        return cls(id=slot, all_coverage=all_coverage, sg_coverage=sg_coverage, raw=body)
