"""
Age apportionment and the hensachi tail model.

Age shares assume a uniform distribution within each national age band.
The tail model maps a hensachi (mean 50, sd 10) onto the fraction of a
normal population lying above it.
"""

import math
from typing import Optional, Sequence, Tuple

from .models import AgeBand

MIN_AGE = 0
MAX_AGE = 99

# National population shares by broad age band.
AGE_BANDS: Tuple[AgeBand, ...] = (
    AgeBand(0, 14, 0.127),
    AgeBand(15, 64, 0.589),
    AgeBand(65, 99, 0.284),
)

HENSACHI_MEAN = 50.0
HENSACHI_SD = 10.0

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)

# Abramowitz & Stegun 26.2.17
_P = 0.2316419
_B1 = 0.319381530
_B2 = -0.356563782
_B3 = 1.781477937
_B4 = -1.821255978
_B5 = 1.330274429


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_age_range(min_age: int, max_age: int) -> Tuple[int, int]:
    """Clamp both ages into [0, 99] and swap them if inverted."""
    lo = int(_clamp(int(min_age), MIN_AGE, MAX_AGE))
    hi = int(_clamp(int(max_age), MIN_AGE, MAX_AGE))
    if hi < lo:
        lo, hi = hi, lo
    return lo, hi


def age_share(min_age: int, max_age: int, bands: Sequence[AgeBand] = AGE_BANDS) -> float:
    """Fraction of the population aged within [min_age, max_age], inclusive."""
    lo, hi = clamp_age_range(min_age, max_age)
    total = 0.0
    weight = 0.0
    for band in bands:
        weight += band.share
        low = max(lo, band.start)
        high = min(hi, band.end)
        if high >= low:
            total += band.share * ((high - low + 1) / band.width)
    if weight <= 0:
        return 0.0
    # full coverage must come out as exactly 1.0 despite float shares
    return _clamp(total / weight, 0.0, 1.0)


def male_in_range(male: int, share: float) -> int:
    """Apportion a male count; a known non-zero population never rounds to 0."""
    count = int(math.floor(male * share + 0.5))
    if male > 0 and count <= 0:
        return 1
    return max(0, count)


def normal_pdf(z: float) -> float:
    return _INV_SQRT_2PI * math.exp(-0.5 * z * z)


def normal_cdf(z: float) -> float:
    t = 1.0 / (1.0 + _P * abs(z))
    poly = normal_pdf(z) * (((((_B5 * t + _B4) * t + _B3) * t + _B2) * t + _B1) * t)
    return poly if z < 0 else 1.0 - poly


def upper_tail(h: float, mean: float = HENSACHI_MEAN, sd: float = HENSACHI_SD) -> float:
    """Share of the population scoring above hensachi ``h``."""
    z = (h - mean) / sd
    return _clamp(1.0 - normal_cdf(z), 0.0, 1.0)


def upper_tail_or_none(h: Optional[float]) -> Optional[float]:
    if h is None:
        return None
    try:
        h = float(h)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(h):
        return None
    return upper_tail(h)
