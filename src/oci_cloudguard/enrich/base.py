from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..normalize.schema import DetectedProblem


@dataclass(frozen=True)
class EnrichResult:
    problem: DetectedProblem
    enrichStatus: str
    enrichError: str | None

    @property
    def ok(self) -> bool:
        return self.enrichStatus == "OK"


@runtime_checkable
class Enricher(Protocol):
    """
    Enricher contract for detected problems.
    Implementations must not mutate the input problem and must not raise:
    failures come back as enrichStatus="ERROR" with the original problem.
    """

    def enrich(self, problem: DetectedProblem) -> EnrichResult:
        ...
