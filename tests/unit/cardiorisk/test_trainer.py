"""Tests for the training procedure."""

import numpy as np
import pytest
import torch
import torch.nn.functional as F

from cardiorisk.config import TrainingConfig
from cardiorisk.domain.models import TrainingExample
from cardiorisk.services.classifier import ClassifierHandle
from cardiorisk.services.data_generator import SyntheticDataGenerator, to_arrays
from cardiorisk.services.trainer import Trainer


@pytest.fixture
def small_set() -> list[TrainingExample]:
    return SyntheticDataGenerator(sample_count=100, rng=np.random.default_rng(3)).generate()


def test_default_split() -> None:
    trainer = Trainer()

    assert trainer.split(1000) == (800, 200)


def test_fit_records_history_per_epoch(small_set: list[TrainingExample]) -> None:
    trainer = Trainer(TrainingConfig(epochs=3, batch_size=32))
    handle = ClassifierHandle.create()

    report = trainer.fit(handle, small_set)

    assert report.epochs == 3
    assert report.train_examples == 80
    assert report.validation_examples == 20
    assert report.steps_per_epoch == 3  # ceil(80 / 32)
    assert [m.epoch for m in report.history] == [1, 2, 3]
    for metrics in report.history:
        assert 0.0 <= metrics.accuracy <= 1.0
        assert metrics.val_loss is not None
        assert metrics.val_accuracy is not None


def test_validation_metrics_come_from_the_trailing_examples(
    small_set: list[TrainingExample],
) -> None:
    head = [TrainingExample(features=e.features, label=(1, 0, 0)) for e in small_set[:80]]
    tail = [TrainingExample(features=e.features, label=(0, 0, 1)) for e in small_set[80:]]
    handle = ClassifierHandle.create()

    report = Trainer(TrainingConfig(epochs=2)).fit(handle, head + tail)

    features, labels = to_arrays(tail)
    x_tail, y_tail = torch.as_tensor(features), torch.as_tensor(labels)
    with torch.no_grad():
        logits = handle.model.logits(x_tail)
    expected_accuracy = (logits.argmax(dim=1) == 2).float().mean().item()
    expected_loss = F.cross_entropy(logits, y_tail).item()

    assert report.train_examples == 80
    assert report.final.val_accuracy == pytest.approx(expected_accuracy)
    assert report.final.val_loss == pytest.approx(expected_loss, rel=1e-5)


@pytest.fixture
def randperm_calls(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    """Record the size of every permutation the trainer draws."""
    calls: list[int] = []
    original = torch.randperm

    def recording_randperm(n: int, *args: object, **kwargs: object) -> torch.Tensor:
        calls.append(n)
        return original(n, *args, **kwargs)

    monkeypatch.setattr(torch, "randperm", recording_randperm)
    return calls


def test_only_training_portion_is_reshuffled_each_epoch(
    small_set: list[TrainingExample], randperm_calls: list[int]
) -> None:
    Trainer(TrainingConfig(epochs=4)).fit(ClassifierHandle.create(), small_set)

    assert randperm_calls == [80, 80, 80, 80]
    assert len(small_set) not in randperm_calls


def test_no_reshuffle_when_shuffle_disabled(
    small_set: list[TrainingExample], randperm_calls: list[int]
) -> None:
    Trainer(TrainingConfig(epochs=2, shuffle=False)).fit(ClassifierHandle.create(), small_set)

    assert randperm_calls == []


def test_fit_without_validation_split(small_set: list[TrainingExample]) -> None:
    trainer = Trainer(TrainingConfig(epochs=1, validation_split=0.0))

    report = trainer.fit(ClassifierHandle.create(), small_set)

    assert report.validation_examples == 0
    assert report.final.val_loss is None


def test_fit_updates_parameters_in_place(small_set: list[TrainingExample]) -> None:
    handle = ClassifierHandle.create()
    before = [p.detach().clone() for p in handle.model.parameters()]

    Trainer(TrainingConfig(epochs=2)).fit(handle, small_set)

    after = list(handle.model.parameters())
    assert any(not torch.equal(b, a) for b, a in zip(before, after))


def test_fit_rejects_empty_training_portion() -> None:
    with pytest.raises(ValueError, match="empty"):
        Trainer().fit(ClassifierHandle.create(), [])


def test_default_training_learns_the_heuristic(trained_handle: ClassifierHandle) -> None:
    examples = SyntheticDataGenerator(sample_count=500, rng=np.random.default_rng(99)).generate()
    features = [list(e.features) for e in examples]
    expected = np.array([e.label.index(1) for e in examples])

    predicted = trained_handle.predict(features).argmax(axis=1)

    assert (predicted == expected).mean() > 0.7


async def test_train_wraps_success_in_result(small_set: list[TrainingExample]) -> None:
    result = await Trainer(TrainingConfig(epochs=1)).train(ClassifierHandle.create(), small_set)

    assert result.is_ok()
    assert result.unwrap().epochs == 1


async def test_train_wraps_failure_in_result(small_set: list[TrainingExample]) -> None:
    handle = ClassifierHandle.create()
    handle.close()

    result = await Trainer(TrainingConfig(epochs=1)).train(handle, small_set)

    assert result.is_err()
    assert isinstance(result.unwrap_err(), RuntimeError)
