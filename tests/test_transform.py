from __future__ import annotations

from datetime import datetime, timedelta, timezone

from cloudguard_fakes import NOW, RULE_ID, problem_summary

from oci_cloudguard.normalize.schema import UNKNOWN_DETECTOR
from oci_cloudguard.normalize.transform import extract_detector, problem_from_summary
from oci_cloudguard.util.time import days_since, format_rfc3339


def test_extract_detector_takes_second_colon_component() -> None:
    assert extract_detector(RULE_ID) == "ConfigurationDetector"
    assert extract_detector("ocid1.rule:ActivityDetector") == "ActivityDetector"


def test_extract_detector_unknown_for_unexpected_formats() -> None:
    assert extract_detector("ocid1.cloudguarddetectorrule.oc1..abc") == UNKNOWN_DETECTOR
    assert extract_detector("ocid1.rule::tail") == UNKNOWN_DETECTOR
    assert extract_detector("") == UNKNOWN_DETECTOR
    assert extract_detector(None) == UNKNOWN_DETECTOR


def test_days_since_detection_uses_first_detected_only() -> None:
    item = problem_summary(
        "p1",
        time_first_detected=NOW - timedelta(days=5),
        time_last_detected=NOW - timedelta(hours=1),
    )
    problem = problem_from_summary(item, NOW)
    assert problem.days_since_detection == 5


def test_days_since_truncates_partial_days() -> None:
    assert days_since(NOW - timedelta(days=2, hours=23), NOW) == 2
    assert days_since(None, NOW) == 0


def test_problem_from_summary_maps_fields_and_keeps_missing_as_none() -> None:
    item = problem_summary(
        "p1",
        resource_name=None,
        region=None,
        labels=None,
        time_first_detected=None,
        lifecycle_state="ACTIVE",
    )
    problem = problem_from_summary(item, NOW)

    assert problem.id == "p1"
    assert problem.resource_type == "Instance"
    assert problem.resource_name is None
    assert problem.region is None
    assert problem.detector == "ConfigurationDetector"
    assert problem.detector_rule_id == RULE_ID
    assert problem.labels == ()
    assert problem.first_detected is None
    assert problem.days_since_detection == 0
    assert problem.description is None
    assert problem.recommendation is None
    assert problem.lifecycle_state == "ACTIVE"


def test_problem_from_summary_accepts_mappings_and_iso_strings() -> None:
    item = {
        "id": "p9",
        "risk_level": "CRITICAL",
        "labels": ["A", "B"],
        "time_first_detected": "2026-01-05T12:00:00Z",
        "time_last_detected": "2026-01-09T12:00:00+00:00",
    }
    problem = problem_from_summary(item, NOW)

    assert problem.risk_level == "CRITICAL"
    assert problem.labels == ("A", "B")
    assert problem.detector == UNKNOWN_DETECTOR
    assert problem.days_since_detection == 5
    assert format_rfc3339(problem.last_detected) == "2026-01-09T12:00:00Z"


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive = datetime(2026, 1, 9, 12, 0, 0)
    problem = problem_from_summary(problem_summary("p1", time_last_detected=naive), NOW)
    assert problem.last_detected == datetime(2026, 1, 9, 12, 0, 0, tzinfo=timezone.utc)


def test_missing_id_stays_none() -> None:
    problem = problem_from_summary(problem_summary("p1", id=None), NOW)
    assert problem.id is None
