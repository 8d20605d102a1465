"""
Inference pipeline: vitals record in, risk verdict out.

Post-processing rules:
- tier is the first index holding the maximum probability (Low wins ties)
- confidence and each distribution entry are percentages rounded to 1 decimal
- no range checks on the input; out-of-range vitals simply extrapolate
"""

from collections.abc import Sequence

import numpy as np
import structlog

from cardiorisk.domain.models import RiskDistribution, RiskTier, RiskVerdict, VitalsRecord
from cardiorisk.services.classifier import ClassifierHandle

logger = structlog.get_logger(__name__)


def build_features(vitals: VitalsRecord) -> list[list[float]]:
    """Single-row feature matrix in training order."""
    return [vitals.features()]


def interpret(probabilities: Sequence[float] | np.ndarray) -> RiskVerdict:
    """Turn one 3-element probability vector into a verdict."""
    probs = [float(p) for p in np.asarray(probabilities).reshape(-1)]
    if len(probs) != len(RiskTier):
        raise ValueError(f"expected {len(RiskTier)} probabilities, got {len(probs)}")

    # np.argmax returns the first maximum
    tier = RiskTier.from_index(int(np.argmax(probs)))
    percentages = [round(p * 100, 1) for p in probs]

    return RiskVerdict(
        tier=tier,
        confidence=percentages[tier.position],
        distribution=RiskDistribution(
            low=percentages[0], medium=percentages[1], high=percentages[2]
        ),
    )


class InferencePipeline:
    """Runs one vitals record through a ready classifier."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="inference_pipeline")

    def run(self, handle: ClassifierHandle, vitals: VitalsRecord) -> RiskVerdict:
        probabilities = handle.predict(build_features(vitals))
        verdict = interpret(probabilities[0])

        self.logger.debug(
            "verdict_produced",
            tier=verdict.tier.value,
            confidence=verdict.confidence,
        )
        return verdict
