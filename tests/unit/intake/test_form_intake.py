"""
Tests for vitals form intake.

These tests verify that raw form submissions are validated the same way the
entry form does before anything reaches the engine.
"""

import pytest

from adapters.intake.form import VitalsValidationError, parse_vitals_form
from cardiorisk.config import get_config


def test_parses_string_form_values() -> None:
    record = parse_vitals_form(
        {
            "heartRate": "72",
            "bloodPressureSys": "120",
            "bloodPressureDia": "80",
            "age": "45",
            "cholesterol": "190",
        }
    )

    assert (record.heart_rate, record.systolic, record.diastolic) == (72, 120, 80)
    assert record.age == 45
    assert record.cholesterol == 190


@pytest.mark.parametrize("cholesterol", [None, "", "0", "abc"])
def test_cholesterol_defaults_to_200(cholesterol: str | None) -> None:
    form = {"heart_rate": 72, "systolic": 120, "diastolic": 80, "age": 45}
    if cholesterol is not None:
        form["cholesterol"] = cholesterol

    record = parse_vitals_form(form)

    assert record.cholesterol == 200


def test_decimal_values_are_truncated() -> None:
    record = parse_vitals_form(
        {"heart_rate": "72.9", "systolic": 120.6, "diastolic": "80", "age": "45"}
    )

    assert record.heart_rate == 72
    assert record.systolic == 120


def test_missing_required_fields_are_all_reported() -> None:
    with pytest.raises(VitalsValidationError) as exc_info:
        parse_vitals_form({"heartRate": "", "age": "45"})

    assert exc_info.value.missing == ["heart_rate", "systolic", "diastolic"]
    assert "Please fill in all required fields" in str(exc_info.value)


@pytest.mark.parametrize(
    ("field", "value"),
    [("age", "-4"), ("systolic", "0"), ("diastolic", "high"), ("cholesterol", "-10")],
)
def test_invalid_values_are_rejected(field: str, value: str) -> None:
    form = {"heart_rate": "72", "systolic": "120", "diastolic": "80", "age": "45"}
    form[field] = value

    with pytest.raises(VitalsValidationError) as exc_info:
        parse_vitals_form(form)

    assert exc_info.value.invalid == [field]


def test_validation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_vitals_form({})


def test_cholesterol_default_can_be_passed_explicitly() -> None:
    form = {"heart_rate": 72, "systolic": 120, "diastolic": 80, "age": 45}

    record = parse_vitals_form(form, default_cholesterol=230)

    assert record.cholesterol == 230


def test_cholesterol_default_follows_engine_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENGINE_DEFAULT_CHOLESTEROL", "185")
    get_config.cache_clear()
    try:
        record = parse_vitals_form({"heart_rate": 72, "systolic": 120, "diastolic": 80, "age": 45})
    finally:
        get_config.cache_clear()

    assert record.cholesterol == 185
