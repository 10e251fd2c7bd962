from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from .normalize.schema import NOT_AVAILABLE, ActivitySummary, DetectedProblem, display
from .util.time import format_short

SUMMARY_TITLE = "=== CLOUD GUARD ACTIVITY SUMMARY ==="
DESCRIPTION_MAX_LEN = 50


def _pct(count: int, total: int) -> Decimal:
    if total <= 0:
        return Decimal("0.0")
    return (Decimal(count) / Decimal(total) * Decimal("100")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def truncate_text(text: str, max_len: int = DESCRIPTION_MAX_LEN) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def _short_description(problem: DetectedProblem) -> str:
    desc = display(problem.description)
    if desc == NOT_AVAILABLE:
        desc = f"{display(problem.resource_type)} issue"
    return truncate_text(desc)


def _count_lines(counts: Dict[str, int], width: int) -> List[str]:
    return [f"  {key:<{width}}: {count:3d}" for key, count in counts.items()]


def render_summary(summary: ActivitySummary) -> str:
    """
    Render the console summary. Only the risk-level table carries percentages;
    a run with no problems prints just the total.
    """
    lines: List[str] = ["", SUMMARY_TITLE, f"Total problems detected: {summary.total}"]
    if summary.total == 0:
        return "\n".join(lines)

    lines += ["", "By Risk Level:"]
    for level, count in summary.by_risk_level.items():
        lines.append(f"  {level:<10}: {count:3d} ({_pct(count, summary.total):5.1f}%)")

    lines += ["", "By Resource Type:"]
    lines += _count_lines(summary.by_resource_type, 25)
    lines += ["", "By Detector:"]
    lines += _count_lines(summary.by_detector, 20)
    lines += ["", "By Region:"]
    lines += _count_lines(summary.by_region, 20)

    lines += ["", "Most Recent Problems:"]
    for i, p in enumerate(summary.recent, start=1):
        lines.append(
            f"  {i}. [{format_short(p.last_detected) or NOT_AVAILABLE}] {display(p.resource_type)} - "
            f"{_short_description(p)} ({display(p.risk_level)}) - {p.days_since_detection} days ago"
        )
    return "\n".join(lines)


def print_summary(summary: ActivitySummary) -> None:
    print(render_summary(summary))
