"""
Feed-forward risk classifier and its disposable handle.

Architecture (fixed):
    4 features -> Dense(16, ReLU) -> Dropout(0.2) -> Dense(8, ReLU) -> Dense(3, softmax)

Raw vitals span very different magnitudes (age ~50, cholesterol ~225), so a
non-trainable rescaling maps each feature onto roughly [-1, 1] using the
synthetic sampling ranges before the first dense layer.
"""

import numpy as np
import structlog
import torch
import torch.nn as nn

from cardiorisk.config import ModelConfig
from cardiorisk.services.data_generator import FEATURE_RANGES

logger = structlog.get_logger(__name__)


class FeatureScaling(nn.Module):
    """Fixed affine rescaling: (x - centre) / half_width per feature."""

    def __init__(self, ranges: tuple[tuple[float, float], ...] = FEATURE_RANGES) -> None:
        super().__init__()
        lows = torch.tensor([low for low, _ in ranges], dtype=torch.float32)
        highs = torch.tensor([high for _, high in ranges], dtype=torch.float32)
        self.register_buffer("centre", (lows + highs) / 2)
        self.register_buffer("half_width", (highs - lows) / 2)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return (x - self.centre) / self.half_width


class RiskClassifier(nn.Module):
    """Maps a batch of 4-feature vitals vectors to 3-way risk probabilities."""

    def __init__(self, config: ModelConfig | None = None) -> None:
        super().__init__()
        config = config or ModelConfig()
        self.config = config
        self.scaling = FeatureScaling()
        self.net = nn.Sequential(
            nn.Linear(config.input_features, config.hidden_units),
            nn.ReLU(),
            nn.Dropout(config.dropout_rate),
            nn.Linear(config.hidden_units, config.second_hidden_units),
            nn.ReLU(),
            nn.Linear(config.second_hidden_units, config.output_classes),
        )
        self.output = nn.Softmax(dim=-1)

    def logits(self, x: torch.Tensor) -> torch.Tensor:
        """Pre-softmax scores, used by the training loss."""
        return self.net(self.scaling(x))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.output(self.logits(x))


class ClassifierHandle:
    """
    Owns one classifier instance and releases it on close().

    A handle is mutable only while the trainer holds it; once handed to the
    engine it is used read-only for inference.
    """

    def __init__(self, model: RiskClassifier, device: str = "cpu") -> None:
        self._model: RiskClassifier | None = model.to(device)
        self.device = device
        self.logger = logger.bind(component="classifier_handle", handle_id=id(self))

    @classmethod
    def create(cls, config: ModelConfig | None = None, device: str = "cpu") -> "ClassifierHandle":
        return cls(RiskClassifier(config), device=device)

    @property
    def closed(self) -> bool:
        return self._model is None

    @property
    def model(self) -> RiskClassifier:
        if self._model is None:
            raise RuntimeError("Classifier handle has been closed")
        return self._model

    def predict(self, features: list[list[float]] | np.ndarray) -> np.ndarray:
        """Run a deterministic forward pass; returns one probability row per input row."""
        model = self.model
        inputs = torch.as_tensor(np.asarray(features, dtype=np.float32), device=self.device)
        if inputs.ndim != 2 or inputs.shape[1] != model.config.input_features:
            raise ValueError(
                f"expected shape (n, {model.config.input_features}), got {tuple(inputs.shape)}"
            )

        model.eval()
        with torch.inference_mode():
            probabilities = model(inputs)
        return probabilities.cpu().numpy()

    def close(self) -> None:
        """Release the model parameters. Safe to call more than once."""
        if self._model is None:
            return
        self._model = None
        if self.device.startswith("cuda"):
            torch.cuda.empty_cache()
        self.logger.debug("classifier_disposed")

    def __enter__(self) -> "ClassifierHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
