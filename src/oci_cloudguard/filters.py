from __future__ import annotations

from typing import Optional

from .normalize.schema import ActivityFilter, DetectedProblem


def _exact(expected: Optional[str], actual: Optional[str]) -> bool:
    if not expected:
        return True
    return actual is not None and actual == expected


def matches(problem: DetectedProblem, flt: ActivityFilter) -> bool:
    """
    Return True when every criterion set on the filter holds for the problem.
    Unset criteria never exclude. String criteria are exact and case-sensitive;
    time bounds are inclusive and compare against last_detected. A problem with
    no last_detected is dropped only when a time bound is set.
    """
    if not _exact(flt.region, problem.region):
        return False
    if not _exact(flt.resource_type, problem.resource_type):
        return False
    if not _exact(flt.problem_id, problem.id):
        return False
    if not _exact(flt.risk_level, problem.risk_level):
        return False
    last = problem.last_detected
    if flt.start_time is not None and (last is None or last < flt.start_time):
        return False
    if flt.end_time is not None and (last is None or last > flt.end_time):
        return False
    return True
