from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from ..enrich import Enricher, ProblemDetailEnricher
from ..filters import matches
from ..logging import get_logger
from ..normalize.schema import ActivityFilter, DetectedProblem
from ..normalize.transform import problem_from_summary
from ..util.errors import map_oci_error
from ..util.pagination import paginate
from ..util.rich_progress import FetchProgress

LOG = get_logger(__name__)

# Cloud Guard rejects page sizes above this.
MAX_PAGE_SIZE = 1000


def _next_page(resp: Any) -> Optional[str]:
    headers = getattr(resp, "headers", None) or {}
    page = headers.get("opc-next-page")
    if page:
        return page
    return getattr(resp, "next_page", None) or None


def _page_items(resp: Any) -> List[Any]:
    data = getattr(resp, "data", None)
    if data is not None and getattr(data, "items", None) is not None:
        data = data.items
    return list(data or [])


class CloudGuardProblemSource:
    """
    Thin adapter over oci.cloud_guard.CloudGuardClient exposing the two calls the
    report needs: a paged problem listing and a per-problem detail lookup.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_page(self, compartment_id: str, limit: int, page: Optional[str]) -> Tuple[List[Any], Optional[str]]:
        try:
            resp = self._client.list_problems(
                compartment_id=compartment_id,
                page=page,
                limit=min(limit, MAX_PAGE_SIZE),
            )  # type: ignore[attr-defined]
        except Exception as e:
            mapped = map_oci_error(e, "OCI SDK error while listing Cloud Guard problems")
            if mapped:
                raise mapped from e
            raise
        return _page_items(resp), _next_page(resp)

    def get_detail(self, problem_id: str) -> Tuple[Optional[str], Optional[str]]:
        try:
            resp = self._client.get_problem(problem_id)  # type: ignore[attr-defined]
        except Exception as e:
            mapped = map_oci_error(e, f"OCI SDK error while fetching problem {problem_id}")
            if mapped:
                raise mapped from e
            raise
        data = getattr(resp, "data", None)
        return getattr(data, "description", None), getattr(data, "recommendation", None)


def fetch_problems(
    source: CloudGuardProblemSource,
    flt: ActivityFilter,
    *,
    now: datetime,
    enricher: Optional[Enricher] = None,
    progress: Optional[FetchProgress] = None,
) -> List[DetectedProblem]:
    """
    Page through the compartment's problems and return the ones matching flt,
    enriched with description/recommendation, in arrival order.

    - Filtering happens before enrichment so discarded problems cost no lookup.
    - A failed enrichment keeps the base problem and logs a warning.
    - Stops once flt.limit problems are kept; later pages are not requested.
    - A listing failure propagates and aborts the fetch.
    """
    enricher = enricher or ProblemDetailEnricher(source)
    kept: List[DetectedProblem] = []

    def fetch(page: Optional[str]) -> Tuple[Sequence[Any], Optional[str]]:
        items, next_page = source.list_page(flt.compartment_id, flt.limit, page)
        LOG.debug(
            "Fetched problem page",
            extra={"step": "fetch", "phase": "page", "items": len(items), "has_next": bool(next_page)},
        )
        return items, next_page

    for item in paginate(fetch):
        problem = problem_from_summary(item, now)
        if progress is not None:
            progress.advance_fetch()
        if not matches(problem, flt):
            continue
        result = enricher.enrich(problem)
        if result.enrichStatus == "ERROR":
            LOG.warning(
                f"Failed to enrich problem {problem.id}: {result.enrichError}",
                extra={"step": "enrich", "phase": "warning", "problem_id": problem.id},
            )
        kept.append(result.problem)
        if progress is not None:
            progress.advance_kept()
        if len(kept) >= flt.limit:
            break
    return kept
