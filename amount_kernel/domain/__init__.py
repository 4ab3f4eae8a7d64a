"""
Pure domain layer.

This module contains the value objects and arithmetic primitives with NO
dependencies on:
- Forms, tables or any UI state
- Persistence or network calls
- Time/clock
- Ambient (global) precision settings

All domain objects are immutable and deterministic.
"""

from amount_kernel.domain.arithmetic import (
    add,
    division_amount,
    multiplier_amount,
    percentage_amount,
    subtract,
    sum_amounts,
)
from amount_kernel.domain.rounding import round_amount
from amount_kernel.domain.values import (
    DEFAULT_DECIMAL_PLACES,
    DEFAULT_EXCHANGE_RATE_DECIMAL_PLACES,
    ExchangeRates,
    PrecisionConfig,
    to_decimal,
    to_flag,
)

__all__ = [
    "DEFAULT_DECIMAL_PLACES",
    "DEFAULT_EXCHANGE_RATE_DECIMAL_PLACES",
    "ExchangeRates",
    "PrecisionConfig",
    "add",
    "division_amount",
    "multiplier_amount",
    "percentage_amount",
    "round_amount",
    "subtract",
    "sum_amounts",
    "to_decimal",
    "to_flag",
]
