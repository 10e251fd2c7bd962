from __future__ import annotations

from typing import Optional, Tuple

from cloudguard_fakes import make_problem

from oci_cloudguard.enrich import Enricher, ProblemDetailEnricher


class _Lookup:
    def __init__(self, result: Tuple[Optional[str], Optional[str]] = ("d", "r"), error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []

    def get_detail(self, problem_id: str) -> Tuple[Optional[str], Optional[str]]:
        self.calls.append(problem_id)
        if self.error is not None:
            raise self.error
        return self.result


def test_enricher_overwrites_description_and_recommendation() -> None:
    lookup = _Lookup(("Public bucket", "Make it private"))
    original = make_problem("p1")

    res = ProblemDetailEnricher(lookup).enrich(original)

    assert res.enrichStatus == "OK"
    assert res.enrichError is None
    assert res.problem.description == "Public bucket"
    assert res.problem.recommendation == "Make it private"
    assert res.problem.id == "p1"
    # input is left untouched
    assert original.description is None
    assert lookup.calls == ["p1"]


def test_enricher_keeps_missing_detail_fields_as_none() -> None:
    res = ProblemDetailEnricher(_Lookup((None, "Rotate keys"))).enrich(make_problem(description="stale"))
    assert res.ok
    assert res.problem.description is None
    assert res.problem.recommendation == "Rotate keys"


def test_enricher_failure_returns_original_problem_and_error() -> None:
    lookup = _Lookup(error=RuntimeError("boom"))
    original = make_problem("p1")

    res = ProblemDetailEnricher(lookup).enrich(original)

    assert not res.ok
    assert res.enrichStatus == "ERROR"
    assert res.enrichError == "boom"
    assert res.problem is original
    assert lookup.calls == ["p1"]


def test_detail_enricher_satisfies_protocol() -> None:
    assert isinstance(ProblemDetailEnricher(_Lookup()), Enricher)


def test_problem_without_id_is_skipped_without_lookup() -> None:
    lookup = _Lookup()
    original = make_problem(id=None)

    res = ProblemDetailEnricher(lookup).enrich(original)

    assert res.enrichStatus == "SKIPPED"
    assert res.enrichError is None
    assert res.problem is original
    assert lookup.calls == []
