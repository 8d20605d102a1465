"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Model architecture is documented here but never read from the environment
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class ModelConfig(BaseModel):
    """Fixed classifier architecture (4 -> 16 -> dropout -> 8 -> 3)."""

    input_features: int = Field(default=4, gt=0, description="Width of the vitals feature vector")
    hidden_units: int = Field(default=16, gt=0, description="Units in the first dense layer")
    second_hidden_units: int = Field(
        default=8, gt=0, description="Units in the second dense layer"
    )
    output_classes: int = Field(default=3, gt=0, description="Number of risk tiers")
    dropout_rate: float = Field(
        default=0.2, ge=0.0, lt=1.0, description="Dropout rate, active during training only"
    )
    learning_rate: float = Field(default=0.001, gt=0.0, description="Adam learning rate")


class TrainingConfig(BaseModel):
    """Synthetic training run settings."""

    sample_count: int = Field(default=1000, gt=0, description="Examples per training set")
    epochs: int = Field(default=50, gt=0, description="Full passes over the training set")
    batch_size: int = Field(default=32, gt=0, description="Mini-batch size")
    validation_split: float = Field(
        default=0.2, ge=0.0, lt=1.0, description="Fraction held out for validation"
    )
    shuffle: bool = Field(default=True, description="Reshuffle the training portion every epoch")


class EngineConfig(BaseModel):
    """Engine lifecycle settings."""

    retry_delay_seconds: float = Field(
        default=2.0, gt=0.0, description="Delay before retrying a failed initialization"
    )
    max_init_retries: int | None = Field(
        default=None, ge=0, description="Automatic retry ceiling (None means unbounded)"
    )
    default_cholesterol: float = Field(
        default=200.0, gt=0.0, description="Cholesterol used when a reading omits it"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    model: ModelConfig = Field(default_factory=ModelConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_optional_int(val: str | None) -> int | None:
        if val is None or val.strip().lower() in {"", "none", "unbounded"}:
            return None
        return int(val)

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    training_config = TrainingConfig(
        sample_count=int(os.getenv("TRAINING_SAMPLE_COUNT", "1000")),
        epochs=int(os.getenv("TRAINING_EPOCHS", "50")),
        batch_size=int(os.getenv("TRAINING_BATCH_SIZE", "32")),
        validation_split=float(os.getenv("TRAINING_VALIDATION_SPLIT", "0.2")),
    )

    engine_config = EngineConfig(
        retry_delay_seconds=float(os.getenv("ENGINE_RETRY_DELAY_SECONDS", "2.0")),
        max_init_retries=_parse_optional_int(os.getenv("ENGINE_MAX_INIT_RETRIES")),
        default_cholesterol=float(os.getenv("ENGINE_DEFAULT_CHOLESTEROL", "200")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        model=ModelConfig(),
        training=training_config,
        engine=engine_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nMODEL")
    print(
        f"Layers: {config.model.input_features} -> {config.model.hidden_units}"
        f" -> dropout({config.model.dropout_rate}) -> {config.model.second_hidden_units}"
        f" -> {config.model.output_classes}"
    )
    print(f"Learning Rate: {config.model.learning_rate}")

    print("\nTRAINING")
    print(f"Samples: {config.training.sample_count}")
    print(f"Epochs: {config.training.epochs}")
    print(f"Batch Size: {config.training.batch_size}")
    print(f"Validation Split: {config.training.validation_split:.0%}")

    print("\nENGINE")
    print(f"Retry Delay: {config.engine.retry_delay_seconds}s")
    retries = config.engine.max_init_retries
    print(f"Max Retries: {'unbounded' if retries is None else retries}")
    print(f"Default Cholesterol: {config.engine.default_cholesterol} mg/dL")


if __name__ == "__main__":
    print_config_summary()
