from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from ..util.time import as_utc, days_since
from .schema import UNKNOWN_DETECTOR, DetectedProblem


def extract_detector(rule_id: Optional[str]) -> str:
    """
    Derive the detector name from a detector rule id.

    Relies on the current id scheme, e.g.
    ocid1.cloudguarddetectorrule.oc1..xxxx:ConfigurationDetector:xxxx
    Anything that does not carry a second ':'-separated component is UNKNOWN.
    """
    if not rule_id:
        return UNKNOWN_DETECTOR
    parts = rule_id.split(":")
    if len(parts) >= 2 and parts[1]:
        return parts[1]
    return UNKNOWN_DETECTOR


def _get(item: Any, attr: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(attr)
    return getattr(item, attr, None)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _labels(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(v) for v in value)


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value.strip():
        return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    return None


def problem_from_summary(item: Any, now: datetime) -> DetectedProblem:
    """
    Map a Cloud Guard ProblemSummary (SDK model or plain mapping with the same
    snake_case attributes) to a DetectedProblem. days_since_detection is
    computed against the caller-supplied run time.
    """
    rule_id = _opt_str(_get(item, "detector_rule_id"))
    first = _timestamp(_get(item, "time_first_detected"))
    last = _timestamp(_get(item, "time_last_detected"))
    return DetectedProblem(
        id=_opt_str(_get(item, "id") or None),
        resource_id=_opt_str(_get(item, "resource_id")),
        resource_name=_opt_str(_get(item, "resource_name")),
        resource_type=_opt_str(_get(item, "resource_type")),
        region=_opt_str(_get(item, "region")),
        compartment_id=_opt_str(_get(item, "compartment_id")),
        risk_level=_opt_str(_get(item, "risk_level")),
        detector=extract_detector(rule_id),
        detector_rule_id=rule_id,
        first_detected=first,
        last_detected=last,
        days_since_detection=days_since(first, now),
        labels=_labels(_get(item, "labels")),
        target_id=_opt_str(_get(item, "target_id")),
        lifecycle_state=_opt_str(_get(item, "lifecycle_state")),
    )
