"""
Synthetic training data for the risk classifier.

Each example samples four vitals uniformly and labels them with a simple
threshold heuristic: one point per threshold exceeded, 0-1 points is Low,
2 is Medium, 3-4 is High. The heuristic is a plausible training signal for
demonstration, not a clinical model.

Sampling is never seeded here; pass an explicit ``numpy.random.Generator``
when a reproducible set is needed.
"""

import numpy as np
import structlog

from cardiorisk.domain.models import RiskTier, TrainingExample

logger = structlog.get_logger(__name__)

# Half-open sampling ranges [low, high), in feature order.
FEATURE_RANGES: tuple[tuple[float, float], ...] = (
    (20.0, 80.0),  # age, years
    (60.0, 140.0),  # heart rate, bpm
    (90.0, 150.0),  # systolic, mmHg
    (150.0, 300.0),  # cholesterol, mg/dL
)

# Strictly-greater thresholds, in feature order.
RISK_THRESHOLDS: tuple[float, ...] = (50.0, 100.0, 130.0, 240.0)

DEFAULT_SAMPLE_COUNT = 1000


def risk_score(features: tuple[float, ...] | list[float]) -> int:
    """Count how many thresholds the feature vector exceeds (0-4)."""
    return sum(1 for value, threshold in zip(features, RISK_THRESHOLDS) if value > threshold)


def tier_for_score(score: int) -> RiskTier:
    if score <= 1:
        return RiskTier.LOW
    if score == 2:
        return RiskTier.MEDIUM
    return RiskTier.HIGH


def one_hot(tier: RiskTier) -> tuple[int, int, int]:
    label = [0, 0, 0]
    label[tier.position] = 1
    return (label[0], label[1], label[2])


class SyntheticDataGenerator:
    """Produces labeled training sets from the threshold heuristic."""

    def __init__(
        self,
        sample_count: int = DEFAULT_SAMPLE_COUNT,
        rng: np.random.Generator | None = None,
    ) -> None:
        if sample_count <= 0:
            raise ValueError("sample_count must be positive")
        self.sample_count = sample_count
        self._rng = rng or np.random.default_rng()
        self.logger = logger.bind(component="synthetic_data_generator")

    def generate(self) -> list[TrainingExample]:
        """Generate a fresh training set."""
        lows = np.array([low for low, _ in FEATURE_RANGES])
        highs = np.array([high for _, high in FEATURE_RANGES])
        samples = self._rng.uniform(lows, highs, size=(self.sample_count, len(FEATURE_RANGES)))

        examples = []
        for row in samples:
            features = (float(row[0]), float(row[1]), float(row[2]), float(row[3]))
            tier = tier_for_score(risk_score(features))
            examples.append(TrainingExample(features=features, label=one_hot(tier)))

        self.logger.debug(
            "training_set_generated",
            count=len(examples),
            tier_counts={
                tier.value: sum(1 for e in examples if e.tier is tier) for tier in RiskTier
            },
        )
        return examples


def to_arrays(examples: list[TrainingExample]) -> tuple[np.ndarray, np.ndarray]:
    """Stack examples into float32 feature and label matrices."""
    features = np.array([e.features for e in examples], dtype=np.float32)
    labels = np.array([e.label for e in examples], dtype=np.float32)
    return features, labels
