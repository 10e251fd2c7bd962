from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, List

from ..normalize.schema import CSV_REPORT_FIELDS, LABEL_SEPARATOR, NOT_AVAILABLE, DetectedProblem, display
from ..util.errors import ExportError
from ..util.time import format_rfc3339


def problem_to_row(problem: DetectedProblem) -> List[str]:
    """
    Flatten a problem into CSV cells in CSV_REPORT_FIELDS order.
    Missing values and empty label sets render as N/A; timestamps as RFC3339 UTC.
    """
    labels = LABEL_SEPARATOR.join(problem.labels) or NOT_AVAILABLE
    return [
        display(problem.id),
        display(format_rfc3339(problem.first_detected)),
        display(format_rfc3339(problem.last_detected)),
        str(problem.days_since_detection),
        display(problem.resource_id),
        display(problem.resource_name),
        display(problem.resource_type),
        display(problem.region),
        display(problem.compartment_id),
        display(problem.detector),
        display(problem.risk_level),
        display(problem.description),
        display(problem.recommendation),
        display(problem.detector_rule_id),
        display(problem.target_id),
        labels,
        display(problem.lifecycle_state),
    ]


def write_csv(problems: Iterable[DetectedProblem], path: Path) -> None:
    """
    Write the activity CSV, one row per problem in input order.
    Parent directories are created and an existing file is overwritten.
    A failure part-way through leaves whatever was already written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"failed to create directory {path.parent}: {e}") from e
    try:
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_REPORT_FIELDS)
            for problem in problems:
                writer.writerow(problem_to_row(problem))
    except OSError as e:
        raise ExportError(f"failed to write CSV file {path}: {e}") from e
