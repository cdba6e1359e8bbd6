"""
Shared fixtures for the rules engine tests.
"""

import random
from pathlib import Path

import pytest
from core.content import ContentRepository

DATA_DIR = Path(__file__).parent.parent / "data"


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture(scope="session")
def content() -> ContentRepository:
    """The shipped data tables, loaded once."""
    return ContentRepository(DATA_DIR, verbose=False)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
