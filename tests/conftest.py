from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable, Iterator

import pytest

from cohorttag.config import ClassificationConfig
from tests._fixtures.fingerprints import FingerprintFactory

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock frozen at FIXED_NOW so day-based rules are deterministic."""
    return lambda: FIXED_NOW


@pytest.fixture
def fps() -> FingerprintFactory:
    return FingerprintFactory(FIXED_NOW)


@pytest.fixture
def config() -> ClassificationConfig:
    return ClassificationConfig()


@pytest.fixture(autouse=True)
def _reset_cohorttag_logger() -> Iterator[None]:
    """Undo configure_logging so caplog sees records in every test."""
    yield
    logger = logging.getLogger("cohorttag")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
