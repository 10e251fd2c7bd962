from __future__ import annotations

from dataclasses import replace
from typing import Optional, Protocol, Tuple

from ..normalize.schema import DetectedProblem
from .base import Enricher, EnrichResult


class ProblemDetailLookup(Protocol):
    def get_detail(self, problem_id: str) -> Tuple[Optional[str], Optional[str]]:
        ...


class ProblemDetailEnricher(Enricher):
    """
    Merge description and recommendation from the per-problem detail lookup.

    - One lookup per problem, no retries.
    - Success: returns a copy with both fields overwritten (missing values stay None).
    - Failure: returns the original problem with enrichStatus="ERROR".
    - A problem without an id is returned unchanged with enrichStatus="SKIPPED".
    """

    def __init__(self, source: ProblemDetailLookup) -> None:
        self._source = source

    def enrich(self, problem: DetectedProblem) -> EnrichResult:  # type: ignore[override]
        if not problem.id:
            return EnrichResult(problem=problem, enrichStatus="SKIPPED", enrichError=None)
        try:
            description, recommendation = self._source.get_detail(problem.id)
        except Exception as e:
            return EnrichResult(problem=problem, enrichStatus="ERROR", enrichError=str(e))
        enriched = replace(problem, description=description, recommendation=recommendation)
        return EnrichResult(problem=enriched, enrichStatus="OK", enrichError=None)
