"""
Values -- Immutable domain value objects for amount calculation.

Responsibility:
    Provides the configuration and input value types every calculation
    receives explicitly: PrecisionConfig (per-company decimal places) and
    ExchangeRates (the header's base->local and base->reporting rates).
    Also provides ``to_decimal``, the permissive "parse or fall back to
    zero" coercion applied once at the record boundary, and ``to_flag``,
    its counterpart for boolean flags.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the arithmetic primitives' callers, the engines and the
    config loader. Depends only on ``rounding`` and ``exceptions``.

Invariants enforced:
    - Every decimal-place count is a non-negative int; an absent count
      falls back to 2 (6 for exchange rates).
    - Precision is never read from ambient/global state: callers pass a
      PrecisionConfig into every calculation.
    - Exchange rates are Decimal; when reporting currency is disabled the
      reporting rate equals the base rate (``ExchangeRates.for_document``).

Failure modes:
    - InvalidPrecisionError on construction with a negative or
      non-integral decimal count.
    - ``to_decimal`` never raises: invalid input becomes Decimal("0").
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from amount_kernel.domain.rounding import validate_decimals
from amount_kernel.exceptions import InvalidPrecisionError

DEFAULT_DECIMAL_PLACES = 2
DEFAULT_EXCHANGE_RATE_DECIMAL_PLACES = 6

_ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a loosely-typed record value to Decimal, falling back to zero.

    Draft documents are recalculated while the user is still typing, so
    None, empty strings, garbage text, booleans and non-finite numbers all
    become zero instead of raising.
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else _ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return _ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            return _ZERO
    else:
        return _ZERO
    return result if result.is_finite() else _ZERO


_TRUE_STRINGS = frozenset({"true", "1"})


def to_flag(value: Any) -> bool:
    """
    Coerce a loosely-typed record flag (``isDebit``) to bool.

    Strings are read by content, so ``"false"`` is False; only ``"true"``
    and ``"1"`` (any case, surrounding blanks ignored) are True. Numbers
    count by truthiness; non-finite numbers, None and anything else are
    False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float, Decimal)):
        return to_decimal(value) != _ZERO
    return False


def _coerce_places(field: str, value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    return validate_decimals(value, field)


@dataclass(frozen=True, slots=True)
class PrecisionConfig:
    """
    Per-company decimal-place settings.

    Contract:
        Fixes the number of fractional digits for base-currency amounts
        (``amt_dec``), local-currency amounts (``loc_amt_dec``),
        reporting-currency amounts (``cty_amt_dec``), quantities
        (``qty_dec``), unit prices (``price_dec``) and exchange rates
        (``exh_rate_dec``).

    Guarantees:
        - Immutable and hashable; safe to share across calculations.
        - Every field is a non-negative int.

    Non-goals:
        - Does NOT know about currencies; the company decides precision.
    """

    amt_dec: int = DEFAULT_DECIMAL_PLACES
    loc_amt_dec: int = DEFAULT_DECIMAL_PLACES
    cty_amt_dec: int = DEFAULT_DECIMAL_PLACES
    qty_dec: int = DEFAULT_DECIMAL_PLACES
    price_dec: int = DEFAULT_DECIMAL_PLACES
    exh_rate_dec: int = DEFAULT_EXCHANGE_RATE_DECIMAL_PLACES

    # snake_case field -> legacy camelCase key used by stored settings
    LEGACY_KEYS: ClassVar[dict[str, str]] = {
        "amt_dec": "amtDec",
        "loc_amt_dec": "locAmtDec",
        "cty_amt_dec": "ctyAmtDec",
        "qty_dec": "qtyDec",
        "price_dec": "priceDec",
        "exh_rate_dec": "exhRateDec",
    }

    def __post_init__(self) -> None:
        for name in self.LEGACY_KEYS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidPrecisionError(name, value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> PrecisionConfig:
        """
        Defaulting constructor.

        Accepts snake_case or camelCase keys. Absent or None entries fall
        back to the defaults; a None mapping yields the all-default config.

        Raises:
            InvalidPrecisionError: a present value is negative or not an int.
        """
        if not data:
            return cls()
        defaults = cls()
        kwargs: dict[str, int] = {}
        for name, legacy in cls.LEGACY_KEYS.items():
            raw = data.get(name)
            if raw is None:
                raw = data.get(legacy)
            kwargs[name] = _coerce_places(name, raw, getattr(defaults, name))
        return cls(**kwargs)

    @classmethod
    def coerce(cls, value: PrecisionConfig | Mapping[str, Any] | None) -> PrecisionConfig:
        """Accept a PrecisionConfig, a settings mapping, or None."""
        if isinstance(value, PrecisionConfig):
            return value
        return cls.from_mapping(value)

    def to_dict(self) -> dict[str, int]:
        """Legacy camelCase rendering, as the settings API returns it."""
        return {legacy: getattr(self, name) for name, legacy in self.LEGACY_KEYS.items()}


@dataclass(frozen=True, slots=True)
class ExchangeRates:
    """
    Exchange-rate pair attached to a document header.

    ``exh_rate`` converts base -> local currency; ``cty_exh_rate`` converts
    base -> reporting ("city") currency.
    """

    exh_rate: Decimal = Decimal("0")
    cty_exh_rate: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "exh_rate", to_decimal(self.exh_rate))
        object.__setattr__(self, "cty_exh_rate", to_decimal(self.cty_exh_rate))

    @classmethod
    def for_document(
        cls,
        exh_rate: Any,
        cty_exh_rate: Any,
        reporting_enabled: bool,
    ) -> ExchangeRates:
        """
        Build the rate pair a document actually uses.

        When reporting currency is disabled the reporting rate is forced
        equal to the base rate, as every document header does before
        displaying totals.
        """
        rate = to_decimal(exh_rate)
        if not reporting_enabled:
            return cls(exh_rate=rate, cty_exh_rate=rate)
        return cls(exh_rate=rate, cty_exh_rate=to_decimal(cty_exh_rate))

    @classmethod
    def coerce(cls, value: ExchangeRates | Mapping[str, Any] | None) -> ExchangeRates:
        """Accept an ExchangeRates, a header mapping (``exhRate``/``ctyExhRate``), or None."""
        if isinstance(value, ExchangeRates):
            return value
        if not value:
            return cls()
        return cls(
            exh_rate=value.get("exh_rate", value.get("exhRate")),
            cty_exh_rate=value.get("cty_exh_rate", value.get("ctyExhRate")),
        )
