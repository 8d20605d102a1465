"""
One-shot training of the risk classifier.

The fit follows the Keras ``fit(validation_split=..., shuffle=True)``
convention: the trailing fraction of the training set is held out once,
before any shuffling, and only the remaining portion is reshuffled every
epoch. Loss is categorical cross-entropy against one-hot labels, optimized
with Adam.
"""

import asyncio
import math
import time

import structlog
import torch
import torch.nn as nn

from cardiorisk.config import ModelConfig, TrainingConfig
from cardiorisk.domain.models import EpochMetrics, TrainingExample, TrainingReport
from cardiorisk.services.classifier import ClassifierHandle
from cardiorisk.services.data_generator import to_arrays
from cardiorisk.services.result import Result

logger = structlog.get_logger(__name__)


class Trainer:
    """Fits a classifier handle in place against a synthetic training set."""

    def __init__(
        self,
        config: TrainingConfig | None = None,
        model_config: ModelConfig | None = None,
    ) -> None:
        self.config = config or TrainingConfig()
        self.model_config = model_config or ModelConfig()
        self.logger = logger.bind(component="trainer")

    def split(self, count: int) -> tuple[int, int]:
        """Return (train_count, validation_count) for a set of the given size."""
        train_count = int(count * (1.0 - self.config.validation_split))
        return train_count, count - train_count

    def fit(self, handle: ClassifierHandle, examples: list[TrainingExample]) -> TrainingReport:
        """Blocking fit. Raises on any failure; the handle is left partially trained."""
        start_time = time.perf_counter()
        model = handle.model
        features, labels = to_arrays(examples)

        train_count, val_count = self.split(len(examples))
        if train_count == 0:
            raise ValueError("training set is empty after the validation split")

        x_all = torch.as_tensor(features, device=handle.device)
        y_all = torch.as_tensor(labels, device=handle.device)
        x_train, y_train = x_all[:train_count], y_all[:train_count]
        x_val, y_val = x_all[train_count:], y_all[train_count:]

        optimizer = torch.optim.Adam(model.parameters(), lr=self.model_config.learning_rate)
        criterion = nn.CrossEntropyLoss()  # soft targets: one-hot rows
        batch_size = self.config.batch_size
        steps_per_epoch = math.ceil(train_count / batch_size)

        self.logger.info(
            "training_started",
            train_examples=train_count,
            validation_examples=val_count,
            epochs=self.config.epochs,
            batch_size=batch_size,
            steps_per_epoch=steps_per_epoch,
        )

        history: list[EpochMetrics] = []
        for epoch in range(1, self.config.epochs + 1):
            model.train()
            if self.config.shuffle:
                order = torch.randperm(train_count, device=handle.device)
            else:
                order = torch.arange(train_count, device=handle.device)

            total_loss = 0.0
            correct = 0
            for step in range(steps_per_epoch):
                batch = order[step * batch_size : (step + 1) * batch_size]
                x_batch, y_batch = x_train[batch], y_train[batch]

                optimizer.zero_grad()
                logits = model.logits(x_batch)
                loss = criterion(logits, y_batch)
                loss.backward()
                optimizer.step()

                total_loss += loss.item() * len(batch)
                correct += int((logits.argmax(dim=1) == y_batch.argmax(dim=1)).sum().item())

            metrics = EpochMetrics(
                epoch=epoch,
                loss=total_loss / train_count,
                accuracy=correct / train_count,
            )
            if val_count:
                val_loss, val_accuracy = self._evaluate(handle, criterion, x_val, y_val)
                metrics = metrics.model_copy(
                    update={"val_loss": val_loss, "val_accuracy": val_accuracy}
                )
            history.append(metrics)

            self.logger.debug(
                "epoch_completed",
                epoch=epoch,
                loss=round(metrics.loss, 4),
                accuracy=round(metrics.accuracy, 4),
                val_loss=None if metrics.val_loss is None else round(metrics.val_loss, 4),
                val_accuracy=(
                    None if metrics.val_accuracy is None else round(metrics.val_accuracy, 4)
                ),
            )

        model.eval()
        report = TrainingReport(
            epochs=self.config.epochs,
            steps_per_epoch=steps_per_epoch,
            train_examples=train_count,
            validation_examples=val_count,
            history=history,
            duration_seconds=time.perf_counter() - start_time,
        )

        self.logger.info(
            "training_completed",
            loss=round(report.final.loss, 4),
            accuracy=round(report.final.accuracy, 4),
            val_accuracy=report.final.val_accuracy,
            duration_seconds=round(report.duration_seconds, 3),
        )
        return report

    @staticmethod
    def _evaluate(
        handle: ClassifierHandle,
        criterion: nn.Module,
        x_val: torch.Tensor,
        y_val: torch.Tensor,
    ) -> tuple[float, float]:
        model = handle.model
        model.eval()
        with torch.no_grad():
            logits = model.logits(x_val)
            loss = criterion(logits, y_val).item()
            accuracy = (logits.argmax(dim=1) == y_val.argmax(dim=1)).float().mean().item()
        return loss, accuracy

    async def train(
        self, handle: ClassifierHandle, examples: list[TrainingExample]
    ) -> Result[TrainingReport]:
        """
        Fit off the event loop.

        Returns:
            Result[TrainingReport]: the report, or the exception that stopped the run.
        """
        try:
            report = await asyncio.to_thread(self.fit, handle, examples)
            return Result.ok(report)
        except Exception as e:
            self.logger.exception("training_failed", error=str(e))
            return Result.err(e)
