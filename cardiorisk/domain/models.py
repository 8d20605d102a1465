"""
Domain models for cardiovascular risk inference.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; nothing here depends on the neural network
backend.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Order matters: the classifier is fit to exactly this feature ordering.
FEATURE_NAMES: tuple[str, ...] = ("age", "heart_rate", "systolic", "cholesterol")


class RiskTier(str, Enum):
    """Discrete output category of the classifier, in output-index order."""

    LOW = "Low Risk"
    MEDIUM = "Medium Risk"
    HIGH = "High Risk"

    @property
    def position(self) -> int:
        return list(RiskTier).index(self)

    @classmethod
    def from_index(cls, index: int) -> "RiskTier":
        return list(cls)[index]


class RiskIndicator(str, Enum):
    """Display indicator shown next to a verdict."""

    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


_INDICATORS: dict[RiskTier, RiskIndicator] = {
    RiskTier.LOW: RiskIndicator.NORMAL,
    RiskTier.MEDIUM: RiskIndicator.WARNING,
    RiskTier.HIGH: RiskIndicator.DANGER,
}


def indicator_for(tier: RiskTier) -> RiskIndicator:
    """Map a risk tier to its display indicator."""
    return _INDICATORS[tier]


class EngineState(str, Enum):
    """Lifecycle of the risk engine's classifier."""

    UNTRAINED = "untrained"
    TRAINING = "training"
    READY = "ready"


class VitalsRecord(BaseModel):
    """One submitted vitals reading."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)  # Copied in, never mutated

    age: float = Field(gt=0, description="Age in years")
    heart_rate: float = Field(gt=0, alias="heartRate", description="Heart rate in bpm")
    systolic: float = Field(gt=0, description="Systolic blood pressure in mmHg")
    diastolic: float | None = Field(
        default=None, gt=0, description="Diastolic blood pressure in mmHg, not a model feature"
    )
    cholesterol: float = Field(default=200.0, gt=0, description="Total cholesterol in mg/dL")
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def features(self) -> list[float]:
        """Feature vector in classifier order: age, heart rate, systolic, cholesterol."""
        return [float(getattr(self, name)) for name in FEATURE_NAMES]


class TrainingExample(BaseModel):
    """A synthetic labeled example; lives only for one training run."""

    model_config = ConfigDict(frozen=True)

    features: tuple[float, float, float, float]
    label: tuple[int, int, int]

    @field_validator("label")
    @classmethod
    def validate_one_hot(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if sorted(v) != [0, 0, 1]:
            raise ValueError(f"label must be one-hot, got {v}")
        return v

    @property
    def tier(self) -> RiskTier:
        return RiskTier.from_index(self.label.index(1))


class RiskDistribution(BaseModel):
    """Per-tier probabilities expressed as percentages."""

    model_config = ConfigDict(frozen=True)

    low: float = Field(ge=0.0, le=100.0)
    medium: float = Field(ge=0.0, le=100.0)
    high: float = Field(ge=0.0, le=100.0)

    def as_list(self) -> list[float]:
        return [self.low, self.medium, self.high]


class RiskVerdict(BaseModel):
    """Result of one inference call."""

    model_config = ConfigDict(frozen=True)

    tier: RiskTier
    confidence: float = Field(ge=0.0, le=100.0, description="Percentage for the predicted tier")
    distribution: RiskDistribution
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def indicator(self) -> RiskIndicator:
        return indicator_for(self.tier)


class EpochMetrics(BaseModel):
    """Loss and accuracy observed at the end of one epoch."""

    epoch: int = Field(ge=1)
    loss: float
    accuracy: float = Field(ge=0.0, le=1.0)
    val_loss: float | None = None
    val_accuracy: float | None = Field(default=None, ge=0.0, le=1.0)


class TrainingReport(BaseModel):
    """Summary of a completed training run."""

    epochs: int = Field(gt=0)
    steps_per_epoch: int = Field(gt=0)
    train_examples: int = Field(gt=0)
    validation_examples: int = Field(ge=0)
    history: list[EpochMetrics]
    duration_seconds: float = Field(ge=0.0)
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def final(self) -> EpochMetrics:
        return self.history[-1]
