"""
Tests for the domain models.

Testing philosophy:
- Property-based testing for the record and label invariants
- Clear test names that describe behavior
"""

from datetime import UTC, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from cardiorisk.domain.models import (
    RiskDistribution,
    RiskIndicator,
    RiskTier,
    RiskVerdict,
    TrainingExample,
    VitalsRecord,
    indicator_for,
)

positive = st.floats(min_value=0.1, max_value=1000.0, allow_nan=False, allow_infinity=False)


class TestVitalsRecord:
    @given(age=positive, heart_rate=positive, systolic=positive, cholesterol=positive)
    def test_features_follow_training_order(
        self, age: float, heart_rate: float, systolic: float, cholesterol: float
    ) -> None:
        record = VitalsRecord(
            age=age,
            heart_rate=heart_rate,
            systolic=systolic,
            diastolic=80,
            cholesterol=cholesterol,
        )

        assert record.features() == [age, heart_rate, systolic, cholesterol]
        assert record.recorded_at.tzinfo == UTC

    def test_accepts_camel_case_payload(self) -> None:
        record = VitalsRecord.model_validate(
            {"age": 40, "heartRate": 72, "systolic": 120, "diastolic": 80}
        )

        assert record.heart_rate == 72
        assert record.cholesterol == 200.0  # default

    def test_diastolic_is_optional(self) -> None:
        record = VitalsRecord(age=30, heart_rate=70, systolic=115, cholesterol=180)

        assert record.diastolic is None
        assert record.features() == [30.0, 70.0, 115.0, 180.0]

    def test_record_is_immutable(self) -> None:
        record = VitalsRecord(age=40, heart_rate=72, systolic=120, diastolic=80)

        with pytest.raises(ValueError, match="frozen"):
            record.age = 41  # type: ignore

    @pytest.mark.parametrize("field", ["age", "heart_rate", "systolic", "diastolic", "cholesterol"])
    def test_non_positive_values_rejected(self, field: str) -> None:
        values = {"age": 40, "heart_rate": 72, "systolic": 120, "diastolic": 80, "cholesterol": 190}
        values[field] = 0

        with pytest.raises(ValueError):
            VitalsRecord(**values)


class TestRiskTier:
    def test_positions_match_output_order(self) -> None:
        assert [t.position for t in RiskTier] == [0, 1, 2]
        assert RiskTier.from_index(2) is RiskTier.HIGH

    def test_indicator_mapping(self) -> None:
        assert indicator_for(RiskTier.LOW) is RiskIndicator.NORMAL
        assert indicator_for(RiskTier.MEDIUM) is RiskIndicator.WARNING
        assert indicator_for(RiskTier.HIGH) is RiskIndicator.DANGER


class TestTrainingExample:
    def test_one_hot_label_accepted(self) -> None:
        example = TrainingExample(features=(30.0, 70.0, 115.0, 180.0), label=(0, 1, 0))
        assert example.tier is RiskTier.MEDIUM

    @pytest.mark.parametrize("label", [(0, 0, 0), (1, 1, 0), (2, 0, 0)])
    def test_non_one_hot_label_rejected(self, label: tuple[int, int, int]) -> None:
        with pytest.raises(ValueError):
            TrainingExample(features=(30.0, 70.0, 115.0, 180.0), label=label)


class TestRiskVerdict:
    def test_indicator_is_serialized(self) -> None:
        verdict = RiskVerdict(
            tier=RiskTier.HIGH,
            confidence=81.2,
            distribution=RiskDistribution(low=3.1, medium=15.7, high=81.2),
            generated_at=datetime(2025, 6, 14, tzinfo=UTC),
        )

        dumped = verdict.model_dump()

        assert dumped["indicator"] == RiskIndicator.DANGER
        assert dumped["distribution"] == {"low": 3.1, "medium": 15.7, "high": 81.2}

    def test_confidence_must_be_a_percentage(self) -> None:
        with pytest.raises(ValueError):
            RiskVerdict(
                tier=RiskTier.LOW,
                confidence=120.0,
                distribution=RiskDistribution(low=100.0, medium=0.0, high=0.0),
            )
