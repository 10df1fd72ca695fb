"""
Population reconciliation.

Responsibilities:
- Turn a candidate's partially-present counts into one PopulationSnapshot.
- Normalize area measurements to square kilometres.

Invariant:
Missing data is never an error; it selects the next step of the
fallback chain.
"""

import math
from typing import Optional

from .models import CandidateRow, PopulationSnapshot

MALE_SHARE_FALLBACK = 0.50

WIKIDATA_ENTITY = "http://www.wikidata.org/entity/"
SQUARE_KILOMETRE = WIKIDATA_ENTITY + "Q712226"
SQUARE_METRE = WIKIDATA_ENTITY + "Q25343"


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_count(value: Optional[float]) -> int:
    if not _finite(value):
        return 0
    return max(0, _round_half_up(value))


def resolve_male(row: CandidateRow) -> int:
    """Male count from the first usable source, clamped to >= 0."""
    if _finite(row.male):
        male = row.male
    elif _finite(row.total) and _finite(row.female):
        male = row.total - row.female
    elif _finite(row.total):
        male = row.total * MALE_SHARE_FALLBACK
    else:
        male = 0
    return _clamp_count(male)


def area_to_km2(amount: Optional[float], unit: Optional[str]) -> Optional[float]:
    """Convert an area amount to km².

    Square metres are scaled; km² and unrecognized units pass through.
    """
    if not _finite(amount):
        return None
    if unit == SQUARE_METRE:
        amount = amount / 1_000_000
    return max(0.0, amount)


def resolve_population(row: CandidateRow) -> PopulationSnapshot:
    return PopulationSnapshot(
        male=resolve_male(row),
        total=_clamp_count(row.total),
        area_km2=area_to_km2(row.area_amount, row.area_unit),
    )
