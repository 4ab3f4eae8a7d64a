"""
Line Calculator - Derive every amount of a transaction line.

Turns quantity, unit price, tax percentage and the header's exchange rates
into a consistent set of base, local and reporting-currency amounts.
Pure functions with no I/O - precision and rates provided as parameters.

Derivation (each step rounded through the kernel arithmetic):
    1. tot_amt        = qty x unit_price            (amt_dec)   [QUANTITY source]
                        or the entered total itself  (amt_dec)   [TOTAL source]
    2. gst_amt        = tot_amt x gst_percentage / 100          (amt_dec)
    3. tot_local_amt  = tot_amt x exh_rate                       (loc_amt_dec)
       gst_local_amt  = gst_amt x exh_rate                       (loc_amt_dec)
    4. tot_cty_amt    = tot_amt x cty_exh_rate                   (cty_amt_dec)
       gst_cty_amt    = gst_amt x cty_exh_rate                   (cty_amt_dec)
       -- exactly zero when reporting currency is disabled
    5. tot_amt_aft_gst = tot_amt + gst_amt                       (amt_dec)

Usage:
    from decimal import Decimal
    from amount_engines.line_calculator import LineCalculator, LineSource
    from amount_engines.lines import TransactionLine
    from amount_kernel.domain.values import ExchangeRates, PrecisionConfig

    calculator = LineCalculator(PrecisionConfig())
    line = calculator.calculate_line(
        TransactionLine.of(tot_amt="200.00", gst_percentage=5),
        ExchangeRates(exh_rate=Decimal("3.75")),
        reporting_enabled=False,
    )
    print(line.gst_amt)        # 10.00
    print(line.tot_local_amt)  # 750.00
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal
from enum import Enum
from typing import Any

from amount_engines.lines import STANDARD_SHAPE, LineShape, TransactionLine
from amount_engines.tracer import traced_engine
from amount_kernel.domain.arithmetic import (
    add,
    division_amount,
    multiplier_amount,
    percentage_amount,
)
from amount_kernel.domain.rounding import round_amount
from amount_kernel.domain.values import ExchangeRates, PrecisionConfig, to_decimal
from amount_kernel.logging_config import get_logger

logger = get_logger("engines.line_calculator")


class LineSource(str, Enum):
    """Which input is authoritative for a line's base total."""

    QUANTITY = "quantity"  # tot_amt derived from qty x unit_price
    TOTAL = "total"  # tot_amt entered directly by the user


class LineCalculator:
    """
    Calculate derived amounts for transaction lines.

    Contract:
        No I/O, no hidden state; the only inputs are the explicit
        arguments and the PrecisionConfig given at construction.
    Guarantees:
        - Every derived field is rounded at its own step.
        - Reporting-currency fields are exactly zero when reporting
          currency is disabled, whatever the rates are.
        - ``recalculate_rates`` never touches tot_amt or gst_amt.
    Non-goals:
        - Does not equalise the reporting rate with the base rate when
          reporting currency is off; callers do that with
          ``ExchangeRates.for_document`` before displaying totals.
    """

    def __init__(self, precision: PrecisionConfig | None = None) -> None:
        self.precision = precision or PrecisionConfig()

    @traced_engine(
        "line_calculator",
        "1.0",
        fingerprint_fields=("line", "rates", "reporting_enabled", "source"),
    )
    def calculate_line(
        self,
        line: TransactionLine,
        rates: ExchangeRates,
        reporting_enabled: bool,
        source: LineSource = LineSource.TOTAL,
    ) -> TransactionLine:
        """
        Run the full derivation for one line.

        Args:
            line: The line as captured by the form.
            rates: The document header's exchange rates.
            reporting_enabled: Whether the company reports in a second currency.
            source: QUANTITY derives tot_amt from qty x unit_price;
                TOTAL keeps the entered tot_amt (rounded to amt_dec).

        Returns:
            A new TransactionLine with every derived field overwritten.
        """
        p = self.precision
        if source == LineSource.QUANTITY:
            tot_amt = multiplier_amount(line.qty, line.unit_price, p.amt_dec)
        else:
            tot_amt = round_amount(line.tot_amt, p.amt_dec)

        gst_amt = percentage_amount(tot_amt, line.gst_percentage, p.amt_dec)
        result = self._convert(
            replace(line, tot_amt=tot_amt, gst_amt=gst_amt), rates, reporting_enabled
        )

        logger.debug("line_calculated", extra={
            "item_no": line.item_no,
            "source": source.value,
            "tot_amt": str(result.tot_amt),
            "gst_amt": str(result.gst_amt),
            "tot_local_amt": str(result.tot_local_amt),
            "tot_cty_amt": str(result.tot_cty_amt),
            "reporting_enabled": reporting_enabled,
        })
        return result

    def recalculate_rates(
        self,
        line: TransactionLine,
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> TransactionLine:
        """
        Re-derive only the currency-converted fields after a rate change.

        tot_amt and gst_amt are left exactly as they are.
        """
        return self._convert(line, rates, reporting_enabled)

    @traced_engine("line_calculator", "1.0", fingerprint_fields=("rates", "reporting_enabled"))
    def recalculate_all(
        self,
        lines: Iterable[TransactionLine],
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> list[TransactionLine]:
        """Apply ``recalculate_rates`` to every line, preserving order."""
        updated = [self._convert(line, rates, reporting_enabled) for line in lines]
        logger.info("lines_recalculated_for_rate_change", extra={
            "line_count": len(updated),
            "exh_rate": str(rates.exh_rate),
            "cty_exh_rate": str(rates.cty_exh_rate),
            "reporting_enabled": reporting_enabled,
        })
        return updated

    def apply_tax_percentage(
        self,
        line: TransactionLine,
        gst_percentage: Any,
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> TransactionLine:
        """
        Set a new tax percentage (e.g. after a tax-code lookup) and
        re-derive the tax and every converted amount from the current total.
        """
        updated = replace(line, gst_percentage=to_decimal(gst_percentage))
        gst_amt = percentage_amount(
            updated.tot_amt, updated.gst_percentage, self.precision.amt_dec
        )
        return self._convert(replace(updated, gst_amt=gst_amt), rates, reporting_enabled)

    def normalize_entry(self, line: TransactionLine) -> TransactionLine:
        """Round the user-entered quantity and unit price to their display precision."""
        return replace(
            line,
            qty=round_amount(line.qty, self.precision.qty_dec),
            unit_price=round_amount(line.unit_price, self.precision.price_dec),
        )

    def line_total_after_tax(self, line: TransactionLine) -> Decimal:
        """Per-line tot_amt + gst_amt at amt_dec."""
        return add(line.tot_amt, line.gst_amt, self.precision.amt_dec)

    def base_from_local(self, local_amt: Any, exh_rate: Any) -> Decimal:
        """Reverse conversion local -> base (local / rate) at amt_dec."""
        return division_amount(
            to_decimal(local_amt), to_decimal(exh_rate), self.precision.amt_dec
        )

    def _convert(
        self,
        line: TransactionLine,
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> TransactionLine:
        p = self.precision
        tot_local_amt = multiplier_amount(line.tot_amt, rates.exh_rate, p.loc_amt_dec)
        gst_local_amt = multiplier_amount(line.gst_amt, rates.exh_rate, p.loc_amt_dec)

        if reporting_enabled:
            tot_cty_amt = multiplier_amount(line.tot_amt, rates.cty_exh_rate, p.cty_amt_dec)
            gst_cty_amt = multiplier_amount(line.gst_amt, rates.cty_exh_rate, p.cty_amt_dec)
        else:
            tot_cty_amt = Decimal("0")
            gst_cty_amt = Decimal("0")

        return replace(
            line,
            tot_local_amt=tot_local_amt,
            gst_local_amt=gst_local_amt,
            tot_cty_amt=tot_cty_amt,
            gst_cty_amt=gst_cty_amt,
            tot_amt_aft_gst=add(line.tot_amt, line.gst_amt, p.amt_dec),
        )


# Convenience function matching the public engine contract


def calculate_line(
    line: TransactionLine | Mapping[str, Any],
    rates: ExchangeRates | Mapping[str, Any] | None,
    precision: PrecisionConfig | Mapping[str, Any] | None,
    reporting_enabled: bool,
    source: LineSource = LineSource.TOTAL,
    shape: LineShape = STANDARD_SHAPE,
) -> TransactionLine | dict[str, Any]:
    """
    Calculate one line.

    Returns the same kind of object it was given: a TransactionLine for a
    TransactionLine, a record dict (keys per ``shape``) for a mapping.

    Args:
        line: TransactionLine or plain record.
        rates: ExchangeRates or a header mapping with exhRate/ctyExhRate.
        precision: PrecisionConfig, a settings mapping, or None for defaults.
        reporting_enabled: Whether reporting currency is enabled.
        source: Which input is authoritative for tot_amt.
        shape: Record-key mapping used when ``line`` is a mapping.
    """
    calculator = LineCalculator(PrecisionConfig.coerce(precision))
    if isinstance(line, TransactionLine):
        return calculator.calculate_line(
            line, ExchangeRates.coerce(rates), reporting_enabled, source
        )
    result = calculator.calculate_line(
        TransactionLine.from_record(line, shape),
        ExchangeRates.coerce(rates),
        reporting_enabled,
        source,
    )
    return result.to_record(shape)
