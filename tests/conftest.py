"""Shared test fixtures."""

import random

import pytest

from qrvector import BitMatrix, GenerationOptions, QrCodeRenderer, Settings


@pytest.fixture
def options() -> GenerationOptions:
    # Built from explicit settings so that QRVECTOR_* variables cannot interfere.
    return GenerationOptions.from_settings(Settings(_env_file=None))


@pytest.fixture
def renderer(options: GenerationOptions) -> QrCodeRenderer:
    return QrCodeRenderer("https://example.org", options)


@pytest.fixture(params=range(5))
def random_matrix(request: pytest.FixtureRequest) -> BitMatrix:
    """A reproducible random 21x21 module grid."""
    rng = random.Random(request.param)
    return BitMatrix([[rng.random() < 0.5 for _ in range(21)] for _ in range(21)])
