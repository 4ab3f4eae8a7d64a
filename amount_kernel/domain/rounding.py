"""
Rounding -- the single rounding rule of the amount kernel.

Responsibility:
    Quantize a numeric value to N fractional digits. Every other component
    rounds exclusively through ``round_amount``; nothing rounds ad hoc.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Leaf module: imported by ``arithmetic`` and ``values``.

Invariants enforced:
    - Round-half-away-from-zero (``ROUND_HALF_UP`` in the ``decimal`` module,
      which breaks ties away from zero for negative values too).
    - Idempotent: round_amount(round_amount(x, n), n) == round_amount(x, n).
    - Sign-symmetric: round_amount(-x, n) == -round_amount(x, n); a rounded
      negative zero is normalised to zero.
    - Floats enter through their shortest ``repr`` so binary noise
      (``1.005`` stored as ``1.00499999...``) never decides a tie.
    - All arithmetic runs in a context sized for its operands
      (``exact_context``), so any finite amount rounds without losing a
      digit first; the ambient decimal context of the caller is never
      consulted.

Failure modes:
    - NonFiniteAmountError for NaN / Infinity (fail fast, never coerced).
    - InvalidPrecisionError for negative or non-integral decimal counts.
    - TypeError for operands that are not Decimal, int or float.
"""

from __future__ import annotations

from decimal import MAX_EMAX, MIN_EMIN, ROUND_HALF_UP, Context, Decimal

from amount_kernel.exceptions import InvalidPrecisionError, NonFiniteAmountError

Number = Decimal | int | float

MIN_PRECISION = 50


def as_decimal(value: Number) -> Decimal:
    """Convert an operand to Decimal without any fallback.

    Unlike ``values.to_decimal`` this is strict: it is used on values the
    engine has already coerced, so anything unexpected is a programming
    error and propagates.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Expected a number, got bool: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    raise TypeError(f"Expected Decimal, int or float, got {type(value).__name__}")


def validate_decimals(decimals: int, field: str = "decimals") -> int:
    """Return ``decimals`` if it is a non-negative int, else raise."""
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidPrecisionError(field, decimals)
    return decimals


def exact_context(*operands: Decimal, decimals: int = 0) -> Context:
    """Return a context wide enough to combine ``operands`` without loss.

    Sums and differences need every digit between the largest leading
    digit and the smallest exponent (or ``decimals``, if finer); products
    need the operands' digit counts added together. Never narrower than
    ``MIN_PRECISION``.
    """
    finite = [op for op in operands if op.is_finite()]
    prec = MIN_PRECISION
    if finite:
        top = max(op.adjusted() for op in finite)
        bottom = min(min(op.as_tuple().exponent for op in finite), -decimals)
        digits = sum(len(op.as_tuple().digits) for op in finite)
        prec = max(prec, top - bottom + 2, digits + 2)
    return Context(prec=prec, rounding=ROUND_HALF_UP, Emax=MAX_EMAX, Emin=MIN_EMIN)


def round_amount(value: Number, decimals: int) -> Decimal:
    """
    Round ``value`` to ``decimals`` fractional digits, half away from zero.

    Preconditions:
        value is a finite Decimal, int or float.
        decimals is a non-negative int.

    Postconditions:
        Returns a Decimal with exactly ``decimals`` fractional digits.

    Raises:
        NonFiniteAmountError: value is NaN or +/-Infinity.
        InvalidPrecisionError: decimals is negative or not an int.
    """
    validate_decimals(decimals)
    amount = as_decimal(value)
    if not amount.is_finite():
        raise NonFiniteAmountError(str(value))

    exponent = Decimal(1).scaleb(-decimals)
    rounded = amount.quantize(
        exponent, rounding=ROUND_HALF_UP, context=exact_context(amount, decimals=decimals)
    )
    if rounded.is_zero():
        # -0.00 -> 0.00
        return rounded.copy_abs()
    return rounded
