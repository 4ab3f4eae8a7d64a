"""
Pytest fixtures for the amount engine test suite.

Provides:
- Precision configurations used across engine tests
- A clean logging hierarchy for every test

The engine is pure, so no database, clock or network fixtures exist.
"""

from decimal import Decimal

import pytest

from amount_kernel.domain.values import ExchangeRates, PrecisionConfig
from amount_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _isolated_logging():
    """Each test starts with an unconfigured amount_kernel logger."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def default_precision() -> PrecisionConfig:
    return PrecisionConfig()


@pytest.fixture
def mixed_precision() -> PrecisionConfig:
    """Base amounts at 2, local at 0 (e.g. JPY books), reporting at 3."""
    return PrecisionConfig(amt_dec=2, loc_amt_dec=0, cty_amt_dec=3)


@pytest.fixture
def riyal_rates() -> ExchangeRates:
    return ExchangeRates(exh_rate=Decimal("3.75"), cty_exh_rate=Decimal("0.27"))
