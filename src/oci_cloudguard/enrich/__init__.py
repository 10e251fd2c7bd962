from __future__ import annotations

from .base import Enricher, EnrichResult
from .details import ProblemDetailEnricher

__all__ = ["Enricher", "EnrichResult", "ProblemDetailEnricher"]
