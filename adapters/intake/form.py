"""
Vitals form intake: raw submitted values to a VitalsRecord.

This is the caller-side validation the engine relies on. The engine itself
never re-checks ranges, so anything that reaches it must already be a
well-formed record.

Rules:
- heart rate, systolic, diastolic and age are required
- blank strings count as missing
- decimal strings are truncated to their integer part ("72.9" -> 72)
- cholesterol is optional; blank or 0 takes the configured default (200 mg/dL)
- every value must be a positive number
"""

import math
import re
from collections.abc import Mapping
from typing import Any

import structlog

from cardiorisk.config import get_config
from cardiorisk.domain.models import VitalsRecord

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("heart_rate", "systolic", "diastolic", "age")

# Accepted spellings for each field, first match wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "heart_rate": ("heart_rate", "heartRate"),
    "systolic": ("systolic", "bloodPressureSys", "systolic_bp"),
    "diastolic": ("diastolic", "bloodPressureDia", "diastolic_bp"),
    "age": ("age",),
    "cholesterol": ("cholesterol",),
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class VitalsValidationError(ValueError):
    """A form submission is missing required fields or holds invalid values."""

    def __init__(self, missing: list[str], invalid: list[str]) -> None:
        self.missing = missing
        self.invalid = invalid
        parts = []
        if missing:
            parts.append(f"missing: {', '.join(missing)}")
        if invalid:
            parts.append(f"invalid: {', '.join(invalid)}")
        super().__init__("Please fill in all required fields (" + "; ".join(parts) + ")")


def _lookup(form: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in form:
            return form[key]
    return None


def _parse_int(value: Any) -> int | None:
    """Integer part of a submitted value, or None when it is blank or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_vitals_form(
    form: Mapping[str, Any], default_cholesterol: float | None = None
) -> VitalsRecord:
    """
    Validate a submitted form and build the record passed to the engine.

    A blank or zero cholesterol falls back to ``default_cholesterol``, or to the
    engine config's ``default_cholesterol`` when none is given.
    """
    if default_cholesterol is None:
        default_cholesterol = get_config().engine.default_cholesterol

    values: dict[str, int] = {}
    missing: list[str] = []
    invalid: list[str] = []

    for field in REQUIRED_FIELDS:
        raw = _lookup(form, field)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            missing.append(field)
            continue
        parsed = _parse_int(raw)
        if parsed is None or parsed <= 0:
            invalid.append(field)
        else:
            values[field] = parsed

    cholesterol: float | None = _parse_int(_lookup(form, "cholesterol"))
    if not cholesterol:
        cholesterol = default_cholesterol
    elif cholesterol <= 0:
        invalid.append("cholesterol")

    if missing or invalid:
        logger.info("vitals_form_rejected", missing=missing, invalid=invalid)
        raise VitalsValidationError(missing, invalid)

    return VitalsRecord(
        age=values["age"],
        heart_rate=values["heart_rate"],
        systolic=values["systolic"],
        diastolic=values["diastolic"],
        cholesterol=cholesterol,
    )
