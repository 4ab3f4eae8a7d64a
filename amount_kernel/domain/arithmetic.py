"""
Arithmetic -- amount primitives that round at every step.

Responsibility:
    Addition, subtraction, multiplication-derived and percentage-derived
    amounts, each quantized through ``round_amount`` before it is returned.
    Also a division-derived amount (local -> base reverse conversion) and
    an ordered running sum.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    The only arithmetic the engines are allowed to use on amounts.

Invariants enforced:
    - Round at every step: each stored or displayed field is itself a
      rounded number, so header totals equal the literal sum of the
      displayed line amounts. Deferring rounding to the end of a chain
      breaks that reconciliation and is not allowed.
    - ``sum_amounts`` adds in input order, rounding after each addition.
    - Sums, differences and products are exact before rounding: operands
      are combined in an ``exact_context`` sized for them, whatever their
      magnitude.

Failure modes:
    - NonFiniteAmountError / InvalidPrecisionError from ``round_amount``.
    - ``division_amount`` by zero returns zero (draft forms divide before
      a rate has been fetched).
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from amount_kernel.domain.rounding import (
    Number,
    as_decimal,
    exact_context,
    round_amount,
)

_HUNDRED = Decimal(100)


def add(a: Number, b: Number, decimals: int) -> Decimal:
    """``a + b`` rounded to ``decimals``."""
    x, y = as_decimal(a), as_decimal(b)
    return round_amount(exact_context(x, y, decimals=decimals).add(x, y), decimals)


def subtract(a: Number, b: Number, decimals: int) -> Decimal:
    """``a - b`` rounded to ``decimals``."""
    x, y = as_decimal(a), as_decimal(b)
    return round_amount(exact_context(x, y, decimals=decimals).subtract(x, y), decimals)


def multiplier_amount(quantity: Number, rate: Number, decimals: int) -> Decimal:
    """
    ``quantity * rate`` rounded to ``decimals``.

    Used for quantity x unit price and for amount x exchange rate.
    """
    q, r = as_decimal(quantity), as_decimal(rate)
    return round_amount(exact_context(q, r, decimals=decimals).multiply(q, r), decimals)


def percentage_amount(base: Number, percentage: Number, decimals: int) -> Decimal:
    """``base * percentage / 100`` rounded to ``decimals`` (tax derivation)."""
    b, p = as_decimal(base), as_decimal(percentage)
    ctx = exact_context(b, p, _HUNDRED, decimals=decimals)
    return round_amount(ctx.divide(ctx.multiply(b, p), _HUNDRED), decimals)


def division_amount(base: Number, divisor: Number, decimals: int) -> Decimal:
    """``base / divisor`` rounded to ``decimals``; zero when divisor is zero."""
    b, d = as_decimal(base), as_decimal(divisor)
    if d.is_zero():
        return round_amount(Decimal(0), decimals)
    return round_amount(exact_context(b, d, decimals=decimals).divide(b, d), decimals)


def sum_amounts(values: Iterable[Number], decimals: int) -> Decimal:
    """Running ``add`` over ``values`` in order, starting from zero."""
    total = round_amount(Decimal(0), decimals)
    for value in values:
        total = add(total, value, decimals)
    return total
