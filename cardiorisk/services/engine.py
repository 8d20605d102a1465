"""
Risk engine: the in-process boundary the UI layer talks to.

Lifecycle:
    UNTRAINED --initialize()--> TRAINING --success--> READY
                                   |
                                   +--failure--> UNTRAINED (retry scheduled)

Key patterns:
- Each training run is a single asyncio task; callers await it, never poll flags
- The live classifier is an explicitly owned handle, disposed before a replacement
  is created so at most one instance exists
- Failures stay inside the engine: they are logged and surface only as state
"""

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from cardiorisk.config import AppConfig, get_config
from cardiorisk.domain.models import (
    EngineState,
    RiskTier,
    RiskVerdict,
    TrainingReport,
    VitalsRecord,
)
from cardiorisk.services.classifier import ClassifierHandle
from cardiorisk.services.data_generator import SyntheticDataGenerator
from cardiorisk.services.inference import InferencePipeline
from cardiorisk.services.recommendations import recommendations_for
from cardiorisk.services.result import Result
from cardiorisk.services.trainer import Trainer

logger = structlog.get_logger(__name__)


class EngineClosedError(RuntimeError):
    """Raised when initialize() is called on an engine that has been closed."""


class RiskEngine:
    """
    Owns one classifier and serves risk verdicts once it is trained.

    Independent engines share nothing, so tests can build as many as they need.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        handle_factory: Callable[[], ClassifierHandle] | None = None,
        generator_factory: Callable[[], SyntheticDataGenerator] | None = None,
        trainer: Trainer | None = None,
        device: str = "cpu",
    ) -> None:
        self.config = config or get_config()
        self.logger = logger.bind(component="risk_engine", engine_id=id(self))

        self._handle_factory = handle_factory or (
            lambda: ClassifierHandle.create(self.config.model, device=device)
        )
        self._generator_factory = generator_factory or (
            lambda: SyntheticDataGenerator(self.config.training.sample_count)
        )
        self.trainer = trainer or Trainer(self.config.training, self.config.model)
        self.pipeline = InferencePipeline()

        self._state = EngineState.UNTRAINED
        self._handle: ClassifierHandle | None = None
        self._ready = asyncio.Event()
        self._init_task: asyncio.Task[None] | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._closed = False

        self.retry_count = 0
        self.last_error: BaseException | None = None
        self.last_training_report: TrainingReport | None = None

    # State queries

    @property
    def state(self) -> EngineState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    def is_training(self) -> bool:
        return self._state is EngineState.TRAINING

    @property
    def handle(self) -> ClassifierHandle | None:
        """The live classifier handle, if one is installed."""
        return self._handle

    @property
    def retry_pending(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    # Lifecycle

    async def initialize(self) -> None:
        """
        Generate a training set and fit a fresh classifier.

        Returns after this attempt finishes. A failed attempt leaves the engine
        UNTRAINED and schedules a retry; nothing is raised to the caller.
        """
        if self._closed:
            raise EngineClosedError("engine has been closed")

        if self._init_task is not None and not self._init_task.done():
            self.logger.info("initialization_already_running")
            await asyncio.shield(self._init_task)
            return

        self._cancel_retry()
        self.retry_count = 0
        await self._start_run()

    async def _start_run(self) -> None:
        self._init_task = asyncio.create_task(self._run_training())
        await asyncio.shield(self._init_task)

    async def _run_training(self) -> None:
        self._state = EngineState.TRAINING
        self._ready.clear()
        self._dispose_handle()

        self.logger.info("initialization_started", attempt=self.retry_count + 1)

        handle: ClassifierHandle | None = None
        try:
            handle = self._handle_factory()
            examples = self._generator_factory().generate()
            result = await self.trainer.train(handle, examples)
        except Exception as e:
            self.logger.exception("initialization_setup_failed", error=str(e))
            result = Result.err(e)

        if handle is None or result.is_err():
            if handle is not None:
                handle.close()
            self.last_error = result.unwrap_err()
            self._state = EngineState.UNTRAINED
            self.logger.error(
                "initialization_failed",
                error=str(self.last_error),
                attempt=self.retry_count + 1,
            )
            self._schedule_retry()
            return

        self._handle = handle
        self.last_training_report = result.unwrap()
        self.last_error = None
        self._state = EngineState.READY
        self._ready.set()
        self.logger.info(
            "engine_ready",
            attempts=self.retry_count + 1,
            val_accuracy=self.last_training_report.final.val_accuracy,
        )

    def _schedule_retry(self) -> None:
        if self._closed:
            return

        limit = self.config.engine.max_init_retries
        if limit is not None and self.retry_count >= limit:
            self.logger.error("initialization_retries_exhausted", retries=self.retry_count)
            return

        delay = self.config.engine.retry_delay_seconds
        self.logger.warning("initialization_retry_scheduled", delay_seconds=delay)
        self._retry_task = asyncio.create_task(self._retry_after(delay))

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._closed:
            return
        self.retry_count += 1
        self._init_task = asyncio.create_task(self._run_training())

    def _cancel_retry(self) -> None:
        if self._retry_task is not None and not self._retry_task.done():
            self._retry_task.cancel()
        self._retry_task = None

    def _dispose_handle(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    async def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Wait for READY; returns False on timeout."""
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def aclose(self) -> None:
        """Cancel pending retries, let an in-flight run finish, and release the classifier."""
        self._closed = True
        self._cancel_retry()

        if self._init_task is not None and not self._init_task.done():
            await asyncio.shield(self._init_task)

        self._dispose_handle()
        self._state = EngineState.UNTRAINED
        self._ready.clear()
        self.logger.info("engine_closed")

    async def __aenter__(self) -> "RiskEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # Inference

    async def infer(self, vitals: VitalsRecord | Mapping[str, Any]) -> RiskVerdict | None:
        """
        Classify one vitals reading.

        Returns None, after logging, when the engine is not ready or the
        forward pass fails.
        """
        if self._state is not EngineState.READY or self._handle is None:
            self.logger.warning("inference_skipped_not_ready", state=self._state.value)
            return None

        try:
            return self.pipeline.run(self._handle, self.to_record(vitals))
        except Exception as e:
            self.logger.exception("inference_failed", error=str(e))
            return None

    def to_record(self, vitals: VitalsRecord | Mapping[str, Any]) -> VitalsRecord:
        """Validate a payload into a record, filling in the configured cholesterol."""
        if isinstance(vitals, VitalsRecord):
            return vitals
        payload = dict(vitals)
        if payload.get("cholesterol") is None:
            payload["cholesterol"] = self.config.engine.default_cholesterol
        return VitalsRecord.model_validate(payload)

    @staticmethod
    def recommendations_for(tier: RiskTier | str | None) -> list[str]:
        return recommendations_for(tier)
