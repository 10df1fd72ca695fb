"""
Tests for estimate parameter validation.
"""

import pytest

from regionest.schema import coerce_estimate_params, validate_estimate_params


class TestValidateEstimateParams:
    """Test validation of query-style estimate parameters."""

    def test_minimal_params_valid(self):
        assert validate_estimate_params({"region": "渋谷区"}) == []

    def test_string_numbers_valid(self):
        params = {"region": "渋谷区", "minAge": "18", "maxAge": " 35 ", "hensachi": "65.5"}
        assert validate_estimate_params(params) == []

    def test_missing_region(self):
        errors = validate_estimate_params({"minAge": 18})
        assert "Missing required field: region" in errors

    def test_blank_region(self):
        errors = validate_estimate_params({"region": "   "})
        assert any("region" in e for e in errors)

    def test_non_integer_ages(self):
        errors = validate_estimate_params({"region": "港区", "minAge": "eighteen", "maxAge": "35.5"})
        assert len(errors) == 2

    def test_bad_hensachi(self):
        for bad in ("high", "nan", float("inf"), True):
            errors = validate_estimate_params({"region": "港区", "hensachi": bad})
            assert errors == ["Field 'hensachi' must be a finite number"]

    def test_out_of_range_ages_are_not_errors(self):
        assert validate_estimate_params({"region": "港区", "minAge": -5, "maxAge": 150}) == []

    def test_multiple_errors_collected(self):
        errors = validate_estimate_params({"minAge": "x", "hensachi": "y"})
        assert len(errors) == 3


class TestCoerceEstimateParams:
    """Test conversion into estimator arguments."""

    def test_defaults(self):
        assert coerce_estimate_params({"region": " 渋谷区 "}) == {
            "region": "渋谷区",
            "min_age": 18,
            "max_age": 35,
            "hensachi": None,
        }

    def test_converts_types(self):
        params = coerce_estimate_params({"region": "港区", "minAge": "20", "maxAge": 40, "hensachi": "62"})
        assert params["min_age"] == 20
        assert params["max_age"] == 40
        assert params["hensachi"] == 62.0

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            coerce_estimate_params({"region": ""})
