from __future__ import annotations

import json
import logging

from oci_cloudguard.logging import JsonFormatter, PlainFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("oci_cloudguard.cli", logging.INFO, __file__, 1, "Fetched 3 problems", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_plain_formatter_includes_step_phase_and_duration() -> None:
    line = PlainFormatter().format(_record(step="fetch", phase="complete", duration_ms=12))
    assert "INFO oci_cloudguard.cli: [fetch:complete] Fetched 3 problems (duration_ms=12)" in line


def test_plain_formatter_appends_error() -> None:
    line = PlainFormatter().format(_record(error="boom"))
    assert line.endswith("Fetched 3 problems: boom")


def test_json_formatter_keeps_json_safe_extras() -> None:
    payload = json.loads(
        JsonFormatter().format(_record(step="fetch", problems=3, config={"limit": 10, "region": None}, obj=object()))
    )
    assert payload["message"] == "Fetched 3 problems"
    assert payload["level"] == "INFO"
    assert payload["step"] == "fetch"
    assert payload["problems"] == 3
    assert payload["config"] == {"limit": 10, "region": None}
    assert "obj" not in payload
