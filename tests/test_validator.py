"""
Unit tests for the Validator and the reference dataset.
"""

from __future__ import annotations

import pytest

from financial_ingest.config import ValidationConfig
from financial_ingest.schema import CanonicalMetric
from financial_ingest.validator import (
    REFERENCE_DATASET,
    Validator,
    is_usable,
    reference_dataset,
)

M = CanonicalMetric


@pytest.fixture
def validator() -> Validator:
    return Validator(config=ValidationConfig())


# ======================================================================
# Usable data
# ======================================================================

class TestUsable:
    def test_valid_dataset(self, validator: Validator) -> None:
        report = validator.validate({M.REVENUE: [100.0], M.EXPENSES: [40.0]})
        assert report.is_valid
        assert report.warnings == []

    def test_empty_dataset(self, validator: Validator) -> None:
        report = validator.validate({})
        assert not report.is_valid
        assert "Dataset has no usable metrics" in report.errors

    def test_only_empty_series(self) -> None:
        report = Validator(ValidationConfig(required_fields=())).validate({M.REVENUE: []})
        assert report.errors == ["Dataset has no usable metrics"]

    @pytest.mark.parametrize("values, expected", [
        ([1.0, 2.0], True),
        ([], False),
        ([float("nan")], False),
        ([1.0, float("inf")], False),
    ])
    def test_is_usable(self, values, expected) -> None:
        assert is_usable(values) is expected


# ======================================================================
# Required fields
# ======================================================================

class TestRequiredFields:
    def test_missing_required(self, validator: Validator) -> None:
        report = validator.validate({M.REVENUE: [100.0]})
        assert report.errors == ["Required field missing: 'expenses'"]

    def test_required_not_numeric(self, validator: Validator) -> None:
        report = validator.validate({M.REVENUE: [100.0], M.EXPENSES: [float("nan")]})
        assert report.errors == ["Required field not numeric: 'expenses'"]

    def test_lookup_by_member_name(self) -> None:
        report = Validator(ValidationConfig(required_fields=("NET_PROFIT",))).validate(
            {M.REVENUE: [1.0]}
        )
        assert report.errors == ["Required field missing: 'netProfit'"]

    def test_unknown_field_is_warning(self) -> None:
        report = Validator(ValidationConfig(required_fields=("bogus",))).validate(
            {M.REVENUE: [1.0]}
        )
        assert report.is_valid
        assert any("bogus" in w for w in report.warnings)

    def test_no_required_fields(self) -> None:
        report = Validator(ValidationConfig(required_fields=())).validate({M.ROE: [0.1]})
        assert report.is_valid


# ======================================================================
# Value sanity
# ======================================================================

class TestValueSanity:
    def test_huge_value_warns(self, validator: Validator) -> None:
        report = validator.validate({M.REVENUE: [1e16], M.EXPENSES: [1.0]})
        assert report.is_valid
        assert any("unit error" in w for w in report.warnings)


# ======================================================================
# Reference dataset
# ======================================================================

class TestReferenceDataset:
    def test_values(self) -> None:
        data = reference_dataset()
        assert data[M.REVENUE] == [19457.0]
        assert data[M.EXPENSES] == [8131.0]
        assert data[M.NET_PROFIT] == [2300.0]
        assert data[M.EBITDA] == [3992.0]
        assert data[M.DEBT_EQUITY_RATIO] == [0.94]
        assert data[M.CURRENT_RATIO] == [1.59]

    def test_passes_default_validation(self, validator: Validator) -> None:
        assert validator.validate(reference_dataset()).is_valid

    def test_copy_is_independent(self) -> None:
        data = reference_dataset()
        data[M.REVENUE].append(1.0)
        assert REFERENCE_DATASET[M.REVENUE] == [19457.0]
