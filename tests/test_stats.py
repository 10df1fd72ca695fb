"""
Tests for age apportionment and the hensachi tail model.
"""

import math
import pytest

from regionest.models import AgeBand
from regionest.stats import (
    AGE_BANDS,
    age_share,
    clamp_age_range,
    male_in_range,
    normal_cdf,
    upper_tail,
    upper_tail_or_none,
)


class TestAgeBands:
    """The national band table."""

    def test_bands_are_contiguous_and_cover_0_to_99(self):
        assert AGE_BANDS[0].start == 0
        assert AGE_BANDS[-1].end == 99
        for prev, nxt in zip(AGE_BANDS, AGE_BANDS[1:]):
            assert nxt.start == prev.end + 1

    def test_shares_sum_to_one(self):
        assert sum(b.share for b in AGE_BANDS) == pytest.approx(1.0)


class TestAgeShare:
    """Apportionment over an age range."""

    def test_full_range_is_exactly_one(self):
        assert age_share(0, 99) == 1.0

    def test_full_range_with_other_table(self):
        bands = (AgeBand(0, 9, 0.1), AgeBand(10, 49, 0.7), AgeBand(50, 99, 0.2))
        assert age_share(0, 99, bands) == 1.0

    def test_single_band_partial(self):
        assert age_share(18, 35) == pytest.approx(0.21204)

    def test_spanning_bands(self):
        expected = 0.127 * (5 / 15) + 0.589 * (10 / 50)
        assert age_share(10, 24) == pytest.approx(expected)

    def test_single_year(self):
        assert age_share(70, 70) == pytest.approx(0.284 / 35)

    def test_clamps_out_of_range(self):
        assert age_share(-10, 150) == 1.0

    def test_inverted_range_is_swapped(self):
        assert age_share(35, 18) == pytest.approx(age_share(18, 35))

    def test_monotone_in_width(self):
        previous = 0.0
        for max_age in range(20, 100):
            share = age_share(20, max_age)
            assert share >= previous
            previous = share

    def test_within_unit_interval(self):
        for lo in range(0, 100, 7):
            for hi in range(lo, 100, 11):
                assert 0.0 <= age_share(lo, hi) <= 1.0


class TestClampAgeRange:
    def test_clamp_and_swap(self):
        assert clamp_age_range(120, -3) == (0, 99)
        assert clamp_age_range(40, 20) == (20, 40)


class TestMaleInRange:
    """Rounding and the floor of one."""

    def test_rounds(self):
        assert male_in_range(80000, 0.21204) == 16963

    def test_floor_of_one_for_known_population(self):
        assert male_in_range(3, 0.01) == 1

    def test_zero_population_stays_zero(self):
        assert male_in_range(0, 0.5) == 0

    def test_zero_share_with_population(self):
        assert male_in_range(1000, 0.0) == 1


class TestTailModel:
    """Normal-approximation upper tail."""

    def test_symmetry_point(self):
        assert upper_tail(50) == pytest.approx(0.5, abs=1e-3)

    def test_known_value(self):
        assert upper_tail(65) == pytest.approx(0.0668, abs=1e-3)

    def test_lower_half(self):
        assert upper_tail(35) == pytest.approx(1 - 0.0668, abs=1e-3)

    def test_strictly_decreasing(self):
        values = [upper_tail(20 + h / 2) for h in range(0, 121)]
        for a, b in zip(values, values[1:]):
            assert a > b

    def test_bounded(self):
        for h in (-1000, -50, 0, 100, 150, 1000):
            assert 0.0 <= upper_tail(h) <= 1.0

    def test_cdf_matches_erf(self):
        for z in (-2.5, -1.0, -0.3, 0.0, 0.4, 1.5, 3.0):
            exact = 0.5 * (1 + math.erf(z / math.sqrt(2)))
            assert normal_cdf(z) == pytest.approx(exact, abs=1e-6)

    def test_or_none(self):
        assert upper_tail_or_none(None) is None
        assert upper_tail_or_none(float("nan")) is None
        assert upper_tail_or_none("abc") is None
        assert upper_tail_or_none("65") == pytest.approx(upper_tail(65))
