"""Shared fixtures: one classifier trained per test module."""

from collections.abc import Iterator

import numpy as np
import pytest
import torch

from cardiorisk.services.classifier import ClassifierHandle
from cardiorisk.services.data_generator import SyntheticDataGenerator
from cardiorisk.services.trainer import Trainer


@pytest.fixture(scope="module")
def trained_handle() -> Iterator[ClassifierHandle]:
    """A classifier fit with the default 1000 examples / 50 epochs, seeded for the test run."""
    torch.manual_seed(1234)
    examples = SyntheticDataGenerator(rng=np.random.default_rng(1234)).generate()
    handle = ClassifierHandle.create()
    Trainer().fit(handle, examples)
    yield handle
    handle.close()
