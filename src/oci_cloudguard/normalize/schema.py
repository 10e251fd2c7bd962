from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..util.errors import ConfigError
from ..util.time import as_utc

NOT_AVAILABLE = "N/A"
UNKNOWN_DETECTOR = "UNKNOWN"
RISK_LEVELS = ("CRITICAL", "HIGH", "MEDIUM", "LOW")
DEFAULT_LIMIT = 1000
RECENT_SAMPLE_SIZE = 5
LABEL_SEPARATOR = "|"

CSV_REPORT_FIELDS = [
    "Problem_ID",
    "First_Detected",
    "Last_Detected",
    "Days_Since_Detection",
    "Resource_ID",
    "Resource_Name",
    "Resource_Type",
    "Region",
    "Compartment_ID",
    "Detector",
    "Risk_Level",
    "Description",
    "Recommendation",
    "Detector_Rule_ID",
    "Target_ID",
    "Labels",
    "Lifecycle_State",
]


def display(value: Optional[str]) -> str:
    """
    Presentation form of an optional string: None becomes the N/A sentinel.
    """
    return NOT_AVAILABLE if value is None else value


@dataclass(frozen=True)
class DetectedProblem:
    """
    One Cloud Guard finding. Optional strings stay None in memory; the N/A
    sentinel is applied only when rendering or exporting.
    """

    id: Optional[str]
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    resource_type: Optional[str] = None
    region: Optional[str] = None
    compartment_id: Optional[str] = None
    risk_level: Optional[str] = None
    detector: str = UNKNOWN_DETECTOR
    detector_rule_id: Optional[str] = None
    first_detected: Optional[datetime] = None
    last_detected: Optional[datetime] = None
    days_since_detection: int = 0
    description: Optional[str] = None
    recommendation: Optional[str] = None
    labels: Tuple[str, ...] = ()
    target_id: Optional[str] = None
    lifecycle_state: Optional[str] = None


@dataclass(frozen=True)
class ActivityFilter:
    compartment_id: str
    region: Optional[str] = None
    resource_type: Optional[str] = None
    problem_id: Optional[str] = None
    risk_level: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        # Naive bounds are taken as UTC so they compare against aware last_detected.
        object.__setattr__(self, "start_time", as_utc(self.start_time))
        object.__setattr__(self, "end_time", as_utc(self.end_time))
        if not self.compartment_id or not self.compartment_id.strip():
            raise ConfigError("compartment-id is required")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            raise ConfigError(f"limit must be a positive integer, got {self.limit!r}")
        if self.start_time and self.end_time and self.start_time > self.end_time:
            raise ConfigError("start time must not be after end time")


@dataclass(frozen=True)
class ActivitySummary:
    total: int
    by_risk_level: Dict[str, int] = field(default_factory=dict)
    by_resource_type: Dict[str, int] = field(default_factory=dict)
    by_detector: Dict[str, int] = field(default_factory=dict)
    by_region: Dict[str, int] = field(default_factory=dict)
    recent: List[DetectedProblem] = field(default_factory=list)
