"""
Core services for the risk engine.

This package contains the synthetic data generator, the classifier and its
trainer, the inference pipeline, the recommendation lookup, and the engine
that ties them together.
"""

from .classifier import ClassifierHandle, RiskClassifier
from .data_generator import SyntheticDataGenerator
from .engine import EngineClosedError, RiskEngine
from .inference import InferencePipeline, interpret
from .recommendations import recommendations_for
from .result import Result
from .trainer import Trainer

__all__ = [
    "ClassifierHandle",
    "EngineClosedError",
    "InferencePipeline",
    "Result",
    "RiskClassifier",
    "RiskEngine",
    "SyntheticDataGenerator",
    "Trainer",
    "interpret",
    "recommendations_for",
]
