"""
amount_engines.header -- Aggregate transaction lines into header totals.

Responsibility:
    Recompute a document header's totals from its full line collection,
    per currency tier (base, local, reporting). Two variants:

    * Simple sum (debit notes, invoices, batch payments): each field is a
      line-by-line running ``add`` in the order the lines were supplied.
    * Debit/credit netting (adjustments): lines are split on ``is_debit``,
      each bucket is summed the same way, the buckets are netted with
      ``subtract``, and the header carries absolute values plus a
      direction flag.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import amount_kernel and sibling engine modules.

Invariants enforced:
    - Totals are recomputed from scratch on every call; never patched.
    - Summation is a running rounded ``add``, never sum-then-round, so a
      header equals the literal sum of its displayed line amounts.
    - Netted headers store absolute values; the sign lives only in
      ``is_debit``. After-tax totals are computed from the signed nets and
      only then made absolute.
    - Reporting-tier totals are zero whenever reporting currency is
      disabled, whatever the lines contain.
    - Empty input yields an all-zero header with ``is_debit=False``.

Failure modes:
    - None for well-formed TransactionLines (amounts are finite Decimals).

Audit relevance:
    Header totals are what gets posted; reconciling them with the sum of
    visible line amounts is the property auditors check first.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from amount_engines.lines import STANDARD_SHAPE, LineShape, TransactionLine
from amount_engines.tracer import traced_engine
from amount_kernel.domain.arithmetic import add, subtract, sum_amounts
from amount_kernel.domain.rounding import round_amount
from amount_kernel.domain.values import PrecisionConfig
from amount_kernel.logging_config import get_logger

logger = get_logger("engines.header")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class HeaderTotals:
    """
    Aggregate amounts of a document header.

    ``is_debit`` is always False for simple-sum headers; for netted
    headers it is the direction of the net base-currency amount.
    """

    tot_amt: Decimal = _ZERO
    gst_amt: Decimal = _ZERO
    tot_amt_aft_gst: Decimal = _ZERO
    tot_local_amt: Decimal = _ZERO
    gst_local_amt: Decimal = _ZERO
    tot_local_amt_aft_gst: Decimal = _ZERO
    tot_cty_amt: Decimal = _ZERO
    gst_cty_amt: Decimal = _ZERO
    tot_cty_amt_aft_gst: Decimal = _ZERO
    is_debit: bool = False

    @property
    def is_zero(self) -> bool:
        """True when every amount is zero."""
        return all(
            getattr(self, name) == _ZERO for name in _HEADER_RECORD_KEYS if name != "is_debit"
        )

    def to_record(self) -> dict[str, Any]:
        """camelCase rendering as the document header stores it."""
        return {key: getattr(self, name) for name, key in _HEADER_RECORD_KEYS.items()}


_HEADER_RECORD_KEYS = {
    "tot_amt": "totAmt",
    "gst_amt": "gstAmt",
    "tot_amt_aft_gst": "totAmtAftGst",
    "tot_local_amt": "totLocalAmt",
    "gst_local_amt": "gstLocalAmt",
    "tot_local_amt_aft_gst": "totLocalAmtAftGst",
    "tot_cty_amt": "totCtyAmt",
    "gst_cty_amt": "gstCtyAmt",
    "tot_cty_amt_aft_gst": "totCtyAmtAftGst",
    "is_debit": "isDebit",
}


@dataclass(frozen=True)
class TierSums:
    """Running sums of one bucket of lines, per field per tier."""

    tot_amt: Decimal = _ZERO
    gst_amt: Decimal = _ZERO
    tot_local_amt: Decimal = _ZERO
    gst_local_amt: Decimal = _ZERO
    tot_cty_amt: Decimal = _ZERO
    gst_cty_amt: Decimal = _ZERO


class HeaderAggregator:
    """
    Aggregate line amounts into header totals.

    Contract:
        No I/O, fully deterministic; lines are read, never mutated.
    Guarantees:
        - ``calculate_header_totals``: per-tier running sums and
          ``*_aft_gst = add(tot, gst)``.
        - ``calculate_header_totals_with_netting``: debit minus credit per
          field, ``is_debit`` from the net base total, absolute values.
    Non-goals:
        - Does not recalculate lines; pass lines through the
          LineCalculator first when rates have changed.
    """

    def __init__(self, precision: PrecisionConfig | None = None) -> None:
        self.precision = precision or PrecisionConfig()

    def sum_lines(self, lines: Iterable[TransactionLine]) -> TierSums:
        """Line-by-line running sums of every amount field, in input order."""
        p = self.precision
        lines = list(lines)
        return TierSums(
            tot_amt=sum_amounts((l.tot_amt for l in lines), p.amt_dec),
            gst_amt=sum_amounts((l.gst_amt for l in lines), p.amt_dec),
            tot_local_amt=sum_amounts((l.tot_local_amt for l in lines), p.loc_amt_dec),
            gst_local_amt=sum_amounts((l.gst_local_amt for l in lines), p.loc_amt_dec),
            tot_cty_amt=sum_amounts((l.tot_cty_amt for l in lines), p.cty_amt_dec),
            gst_cty_amt=sum_amounts((l.gst_cty_amt for l in lines), p.cty_amt_dec),
        )

    @traced_engine("header_aggregator", "1.0", fingerprint_fields=("lines", "reporting_enabled"))
    def calculate_header_totals(
        self,
        lines: Iterable[TransactionLine],
        reporting_enabled: bool,
    ) -> HeaderTotals:
        """
        Simple-sum header totals.

        Args:
            lines: Every line of the document, in display order.
            reporting_enabled: Whether reporting currency is enabled.

        Returns:
            HeaderTotals with ``is_debit=False``.
        """
        t0 = time.monotonic()
        lines = list(lines)
        p = self.precision
        sums = self.sum_lines(lines)

        if reporting_enabled:
            tot_cty_amt = sums.tot_cty_amt
            gst_cty_amt = sums.gst_cty_amt
            tot_cty_amt_aft_gst = add(tot_cty_amt, gst_cty_amt, p.cty_amt_dec)
        else:
            tot_cty_amt = gst_cty_amt = tot_cty_amt_aft_gst = _ZERO

        totals = HeaderTotals(
            tot_amt=sums.tot_amt,
            gst_amt=sums.gst_amt,
            tot_amt_aft_gst=add(sums.tot_amt, sums.gst_amt, p.amt_dec),
            tot_local_amt=sums.tot_local_amt,
            gst_local_amt=sums.gst_local_amt,
            tot_local_amt_aft_gst=add(sums.tot_local_amt, sums.gst_local_amt, p.loc_amt_dec),
            tot_cty_amt=tot_cty_amt,
            gst_cty_amt=gst_cty_amt,
            tot_cty_amt_aft_gst=tot_cty_amt_aft_gst,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("header_totals_calculated", extra={
            "line_count": len(lines),
            "tot_amt": str(totals.tot_amt),
            "gst_amt": str(totals.gst_amt),
            "tot_local_amt": str(totals.tot_local_amt),
            "reporting_enabled": reporting_enabled,
            "duration_ms": duration_ms,
        })
        return totals

    @traced_engine("header_aggregator", "1.0", fingerprint_fields=("lines", "reporting_enabled"))
    def calculate_header_totals_with_netting(
        self,
        lines: Iterable[TransactionLine],
        reporting_enabled: bool,
    ) -> HeaderTotals:
        """
        Debit/credit netted header totals.

        Formula per field: net = debit bucket - credit bucket.
        Header direction: is_debit is True when the net base total is
        positive (debits exceed credits) and False otherwise. This is the
        inverse of the legacy adjustment helper, which set the flag when the
        net was negative; compare stored legacy headers accordingly.

        Args:
            lines: Every line of the document; each carries ``is_debit``.
            reporting_enabled: Whether reporting currency is enabled.

        Returns:
            HeaderTotals with absolute amounts and the direction flag.
        """
        t0 = time.monotonic()
        lines = list(lines)
        if not lines:
            logger.debug("netted_header_totals_empty", extra={})
            return HeaderTotals()

        p = self.precision
        debit = self.sum_lines(l for l in lines if l.is_debit)
        credit = self.sum_lines(l for l in lines if not l.is_debit)

        net_tot = subtract(debit.tot_amt, credit.tot_amt, p.amt_dec)
        net_gst = subtract(debit.gst_amt, credit.gst_amt, p.amt_dec)
        net_tot_local = subtract(debit.tot_local_amt, credit.tot_local_amt, p.loc_amt_dec)
        net_gst_local = subtract(debit.gst_local_amt, credit.gst_local_amt, p.loc_amt_dec)
        net_tot_cty = subtract(debit.tot_cty_amt, credit.tot_cty_amt, p.cty_amt_dec)
        net_gst_cty = subtract(debit.gst_cty_amt, credit.gst_cty_amt, p.cty_amt_dec)

        is_debit = net_tot > _ZERO

        if reporting_enabled:
            tot_cty_amt = _absolute(net_tot_cty, p.cty_amt_dec)
            gst_cty_amt = _absolute(net_gst_cty, p.cty_amt_dec)
            tot_cty_amt_aft_gst = _absolute(
                add(net_tot_cty, net_gst_cty, p.cty_amt_dec), p.cty_amt_dec
            )
        else:
            tot_cty_amt = gst_cty_amt = tot_cty_amt_aft_gst = _ZERO

        totals = HeaderTotals(
            tot_amt=_absolute(net_tot, p.amt_dec),
            gst_amt=_absolute(net_gst, p.amt_dec),
            tot_amt_aft_gst=_absolute(add(net_tot, net_gst, p.amt_dec), p.amt_dec),
            tot_local_amt=_absolute(net_tot_local, p.loc_amt_dec),
            gst_local_amt=_absolute(net_gst_local, p.loc_amt_dec),
            tot_local_amt_aft_gst=_absolute(
                add(net_tot_local, net_gst_local, p.loc_amt_dec), p.loc_amt_dec
            ),
            tot_cty_amt=tot_cty_amt,
            gst_cty_amt=gst_cty_amt,
            tot_cty_amt_aft_gst=tot_cty_amt_aft_gst,
            is_debit=is_debit,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("netted_header_totals_calculated", extra={
            "line_count": len(lines),
            "debit_tot_amt": str(debit.tot_amt),
            "credit_tot_amt": str(credit.tot_amt),
            "net_tot_amt": str(net_tot),
            "is_debit": is_debit,
            "reporting_enabled": reporting_enabled,
            "duration_ms": duration_ms,
        })
        return totals


def _absolute(value: Decimal, decimals: int) -> Decimal:
    return round_amount(abs(value), decimals)


# Convenience functions matching the public engine contract


def _as_lines(
    lines: Iterable[TransactionLine | Mapping[str, Any]],
    shape: LineShape,
) -> list[TransactionLine]:
    return [
        l if isinstance(l, TransactionLine) else TransactionLine.from_record(l, shape)
        for l in lines
    ]


def calculate_header_totals(
    lines: Iterable[TransactionLine | Mapping[str, Any]],
    precision: PrecisionConfig | Mapping[str, Any] | None,
    reporting_enabled: bool,
    shape: LineShape = STANDARD_SHAPE,
) -> HeaderTotals:
    """Simple-sum header totals for TransactionLines or plain records."""
    aggregator = HeaderAggregator(PrecisionConfig.coerce(precision))
    return aggregator.calculate_header_totals(_as_lines(lines, shape), reporting_enabled)


def calculate_header_totals_with_netting(
    lines: Iterable[TransactionLine | Mapping[str, Any]],
    precision: PrecisionConfig | Mapping[str, Any] | None,
    reporting_enabled: bool,
    shape: LineShape = STANDARD_SHAPE,
) -> HeaderTotals:
    """Debit/credit netted header totals for TransactionLines or plain records."""
    aggregator = HeaderAggregator(PrecisionConfig.coerce(precision))
    return aggregator.calculate_header_totals_with_netting(
        _as_lines(lines, shape), reporting_enabled
    )
