"""
Scoring Logic for Region Resolution.

Responsibilities:
- Compute a deterministic match score between a normalized query and a
  candidate row.
- Rank candidate rows by score.

Non-Responsibilities:
- No network access.
- No population reconciliation.

Invariant:
Given identical inputs, this module must always return the same scores
in the same order. Equal scores are ordered by item identifier, then
label, then parent label.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, List

from .models import CandidateRow, NormalizedQuery, ScoredCandidate
from .normalize import normalize_name

EXACT_MATCH_WEIGHT = 1000.0
SUFFIX_MATCH_WEIGHT = 50.0
HINT_MATCH_WEIGHT = 300.0
MAGNITUDE_WEIGHT = 10.0
RECENCY_CAP_YEARS = 50.0

RECENCY_CUTOFF = datetime(2010, 1, 1, tzinfo=timezone.utc).timestamp()
SECONDS_PER_YEAR = 365 * 24 * 3600


def magnitude_score(row: CandidateRow) -> float:
    if row.total is not None:
        magnitude = row.total
    elif row.male is not None:
        magnitude = row.male
    else:
        magnitude = 0.0
    return MAGNITUDE_WEIGHT * math.log10(max(1.0, magnitude + 1))


def recency_score(row: CandidateRow) -> float:
    """Fractional years between the cutoff and the freshest count, capped."""
    times = [t for t in (row.male_time, row.total_time) if t is not None]
    if not times:
        return 0.0
    years = (max(times) - RECENCY_CUTOFF) / SECONDS_PER_YEAR
    return min(RECENCY_CAP_YEARS, years)


def score_row(row: CandidateRow, query: NormalizedQuery) -> float:
    score = 0.0
    label = normalize_name(row.label)

    if label and label == query.canonical_name:
        score += EXACT_MATCH_WEIGHT
    if query.suffix and label.endswith(query.suffix):
        score += SUFFIX_MATCH_WEIGHT
    if query.region_hint and row.parent_label and query.region_hint in row.parent_label:
        score += HINT_MATCH_WEIGHT

    score += magnitude_score(row)
    score += recency_score(row)
    return score


def rank_candidates(rows: Iterable[CandidateRow], query: NormalizedQuery) -> List[ScoredCandidate]:
    """Score rows and return them best-first."""
    scored = [ScoredCandidate(row=row, score=score_row(row, query)) for row in rows]
    scored.sort(key=ScoredCandidate.sort_key)
    return scored
