"""
Region Estimation Orchestrator.

Responsibilities:
- Normalize the requested region name and consult the cache.
- Fetch and rank candidates, reconcile the top one's population.
- Apportion by age and apply the hensachi tail model.

Non-Responsibilities:
- No HTTP routing or response shaping.
- No scoring or reconciliation logic of its own.

Invariant:
Public operations never raise. Every failure mode yields a complete
result, labelled with ``note="not-found"`` or ``error="backend-fallback"``.
"""

from typing import Any, Dict, Optional, Union

from .cache import ResultCache, SqlResultCache, make_cache_key, make_regions_key
from .demographics import resolve_population
from .logger import StructuredLogger, get_logger
from .models import EstimateResult
from .normalize import normalize_query
from .scoring import rank_candidates
from .settings import Settings
from .sparql import UNAVAILABLE, SparqlClient
from .stats import age_share, clamp_age_range, male_in_range, upper_tail_or_none

NOT_FOUND = "not-found"
BACKEND_FALLBACK = "backend-fallback"
MAX_SUGGESTIONS = 20

Cache = Union[ResultCache, SqlResultCache]


class RegionEstimator:
    def __init__(
        self,
        client: Optional[SparqlClient] = None,
        cache: Optional[Cache] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.client = client or SparqlClient()
        self.cache = cache if cache is not None else ResultCache()
        self.logger = logger or get_logger()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RegionEstimator":
        client = SparqlClient(
            endpoint=settings.endpoint,
            user_agent=settings.user_agent,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            base_delay=settings.backoff,
        )
        if settings.cache_db is not None:
            cache = SqlResultCache(settings.cache_db, ttl=settings.cache_ttl)
        else:
            cache = ResultCache(ttl=settings.cache_ttl)
        return cls(client=client, cache=cache)

    def _cached(self, key: str) -> Optional[Any]:
        payload = self.cache.get(key)
        if payload is None:
            self.logger.record_cache_miss()
        else:
            self.logger.record_cache_hit()
            self.logger.debug("Cache hit", key=key)
        return payload

    def estimate(
        self,
        region: str,
        min_age: int = 18,
        max_age: int = 35,
        hensachi: Optional[float] = None,
    ) -> EstimateResult:
        """
        Estimate the male population of ``region`` aged [min_age, max_age].

        Args:
            region: Free-text place name, optionally prefixed by a prefecture
            min_age: Lower age bound (clamped into 0-99)
            max_age: Upper age bound (clamped into 0-99, swapped if inverted)
            hensachi: Optional selectivity score (mean 50, sd 10)

        Returns:
            EstimateResult; never raises
        """
        try:
            return self._estimate(region, min_age, max_age, hensachi)
        except Exception as e:
            self.logger.error(
                "Estimate failed, returning fallback",
                region=region,
                error=type(e).__name__,
                detail=str(e),
            )
            return EstimateResult(region=str(region or ""), error=BACKEND_FALLBACK)

    def _estimate(self, region, min_age, max_age, hensachi) -> EstimateResult:
        query = normalize_query(region)
        lo, hi = clamp_age_range(min_age, max_age)
        tail = upper_tail_or_none(hensachi)
        key = make_cache_key(query.canonical_name, lo, hi, hensachi if tail is not None else None)

        cached = self._cached(key)
        if cached is not None:
            return EstimateResult.from_dict(cached)

        not_found = EstimateResult(region=str(region or ""), upper_tail=tail, note=NOT_FOUND)
        if query.is_empty:
            return not_found

        rows = self.client.fetch_candidates(query)
        if rows is UNAVAILABLE:
            self.logger.warning("Knowledge source unavailable", region=query.canonical_name)
            self.cache.set(key, not_found.to_dict())
            return not_found

        ranked = rank_candidates(rows, query)
        if not ranked:
            self.logger.info("No candidates matched", region=query.canonical_name)
            self.cache.set(key, not_found.to_dict())
            return not_found

        top = ranked[0].row
        population = resolve_population(top)
        share = age_share(lo, hi)
        result = EstimateResult(
            region=top.label,
            prefecture=top.parent_label or None,
            male_in_range=male_in_range(population.male, share),
            population=population,
            upper_tail=tail,
        )
        self.logger.info(
            "Resolved region",
            query=query.canonical_name,
            region=top.label,
            prefecture=top.parent_label,
            score=round(ranked[0].score, 3),
            candidates=len(ranked),
        )
        self.cache.set(key, result.to_dict())
        return result

    def suggest_regions(self, query: str) -> Dict[str, Any]:
        """
        Suggest display names for a partial region name.

        Returns:
            {"candidates": [{"regionName": str}, ...]}, at most 20 entries,
            best match first; never raises
        """
        try:
            return self._suggest_regions(query)
        except Exception as e:
            self.logger.error("Region suggestion failed", query=query, error=type(e).__name__)
            return {"candidates": []}

    def _suggest_regions(self, query: str) -> Dict[str, Any]:
        normalized = normalize_query(query)
        if normalized.is_empty:
            return {"candidates": []}

        key = make_regions_key(normalized.canonical_name)
        cached = self._cached(key)
        if cached is not None:
            return {"candidates": [dict(c) for c in cached.get("candidates", [])]}

        rows = self.client.fetch_candidates(normalized)
        if rows is UNAVAILABLE:
            rows = []

        seen = set()
        names = []
        for scored in rank_candidates(rows, normalized):
            name = scored.row.display_name
            if not name or name in seen:
                continue
            seen.add(name)
            names.append({"regionName": name})
            if len(names) >= MAX_SUGGESTIONS:
                break

        payload = {"candidates": names}
        self.cache.set(key, payload)
        return {"candidates": [dict(c) for c in names]}


_default_estimator: Optional[RegionEstimator] = None


def get_estimator() -> RegionEstimator:
    """Get or create the process-wide estimator configured from the environment."""
    global _default_estimator
    if _default_estimator is None:
        _default_estimator = RegionEstimator.from_settings(Settings.from_env())
    return _default_estimator


def reset_estimator() -> None:
    global _default_estimator
    _default_estimator = None


def estimate(
    region: str,
    min_age: int = 18,
    max_age: int = 35,
    hensachi: Optional[float] = None,
) -> EstimateResult:
    return get_estimator().estimate(region, min_age, max_age, hensachi)


def suggest_regions(query: str) -> Dict[str, Any]:
    return get_estimator().suggest_regions(query)
