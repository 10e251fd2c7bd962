from __future__ import annotations

from collections import Counter
from typing import Sequence

from .normalize.schema import RECENT_SAMPLE_SIZE, ActivitySummary, DetectedProblem, display


def summarize(problems: Sequence[DetectedProblem], recent_limit: int = RECENT_SAMPLE_SIZE) -> ActivitySummary:
    """
    Build frequency tables and the recent-problem sample for a completed fetch.

    Keys are the literal display values, so missing fields count under N/A and
    unparseable detector rule ids under UNKNOWN. The recent sample is the head of
    the input in arrival order; sort by last_detected beforehand for true recency.
    """
    by_risk: Counter[str] = Counter()
    by_type: Counter[str] = Counter()
    by_detector: Counter[str] = Counter()
    by_region: Counter[str] = Counter()
    for p in problems:
        by_risk[display(p.risk_level)] += 1
        by_type[display(p.resource_type)] += 1
        by_detector[display(p.detector)] += 1
        by_region[display(p.region)] += 1
    return ActivitySummary(
        total=len(problems),
        by_risk_level=dict(by_risk),
        by_resource_type=dict(by_type),
        by_detector=dict(by_detector),
        by_region=dict(by_region),
        recent=list(problems[: max(recent_limit, 0)]),
    )
