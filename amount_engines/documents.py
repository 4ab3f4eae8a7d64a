"""
amount_engines.documents -- One engine, instantiated per document type.

Responsibility:
    Binds the generic line calculator and header aggregator to the record
    shape, entry mode and netting mode of each document type, and exposes
    the record-level operations the form layer triggers: a line edited, the
    details collection changed, an exchange rate changed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The only module that knows which document uses which shape; the
    calculator and aggregator stay generic.

Invariants enforced:
    - Records in, records out: every operation returns plain dicts with
      the same keys the document uses, derived fields overwritten.
    - A rate change re-derives converted fields only, then recomputes the
      header from the full collection.
    - When reporting currency is disabled the reporting rate is forced to
      the base rate before anything is derived (``ExchangeRates.for_document``).
    - Every record logged while an engine operation runs carries the
      document type through ``LogContext``.

Failure modes:
    - UnknownDocumentTypeError from ``get_document_engine`` for an
      unregistered document type.

Usage:
    from amount_engines.documents import DocumentType, get_document_engine
    from amount_kernel.domain.values import PrecisionConfig

    engine = get_document_engine(DocumentType.AP_ADJUSTMENT, PrecisionConfig())
    details, header = engine.on_rate_change(details, "3.75", None, False)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from amount_engines.header import HeaderAggregator, HeaderTotals
from amount_engines.line_calculator import LineCalculator, LineSource
from amount_engines.lines import (
    BILLING_SHAPE,
    DETAIL_AMOUNT_SHAPE,
    OPERATIONS_SHAPE,
    STANDARD_SHAPE,
    LineShape,
    TransactionLine,
)
from amount_kernel.domain.rounding import round_amount
from amount_kernel.domain.values import ExchangeRates, PrecisionConfig, to_decimal
from amount_kernel.exceptions import UnknownDocumentTypeError
from amount_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.documents")


class DocumentType(str, Enum):
    """Documents whose lines carry money."""

    AP_INVOICE = "ap_invoice"
    AR_INVOICE = "ar_invoice"
    AP_DEBIT_NOTE = "ap_debit_note"
    AR_DEBIT_NOTE = "ar_debit_note"
    AP_CREDIT_NOTE = "ap_credit_note"
    AR_CREDIT_NOTE = "ar_credit_note"
    AP_ADJUSTMENT = "ap_adjustment"
    AR_ADJUSTMENT = "ar_adjustment"
    CB_BATCH_PAYMENT = "cb_batch_payment"
    CB_GEN_PAYMENT = "cb_gen_payment"
    CB_GEN_RECEIPT = "cb_gen_receipt"
    OPS_DEBIT_NOTE = "ops_debit_note"


class NettingMode(str, Enum):
    """How a document's header totals are aggregated."""

    SIMPLE = "simple"
    DEBIT_CREDIT = "debit_credit"


@dataclass(frozen=True)
class DocumentProfile:
    """Static description of how one document type calculates."""

    document_type: DocumentType
    shape: LineShape
    source: LineSource
    netting: NettingMode = NettingMode.SIMPLE


_PROFILES: dict[DocumentType, DocumentProfile] = {
    p.document_type: p
    for p in (
        DocumentProfile(DocumentType.AP_INVOICE, BILLING_SHAPE, LineSource.QUANTITY),
        DocumentProfile(DocumentType.AR_INVOICE, BILLING_SHAPE, LineSource.QUANTITY),
        DocumentProfile(DocumentType.AP_DEBIT_NOTE, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.AR_DEBIT_NOTE, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.AP_CREDIT_NOTE, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.AR_CREDIT_NOTE, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(
            DocumentType.AP_ADJUSTMENT, STANDARD_SHAPE, LineSource.TOTAL, NettingMode.DEBIT_CREDIT
        ),
        DocumentProfile(
            DocumentType.AR_ADJUSTMENT, STANDARD_SHAPE, LineSource.TOTAL, NettingMode.DEBIT_CREDIT
        ),
        DocumentProfile(DocumentType.CB_BATCH_PAYMENT, DETAIL_AMOUNT_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.CB_GEN_PAYMENT, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.CB_GEN_RECEIPT, STANDARD_SHAPE, LineSource.TOTAL),
        DocumentProfile(DocumentType.OPS_DEBIT_NOTE, OPERATIONS_SHAPE, LineSource.QUANTITY),
    )
}


def normalize_exchange_rate(rate: Any, precision: PrecisionConfig) -> Decimal:
    """Round a fetched exchange rate to ``exh_rate_dec`` before it is stored on a header."""
    return round_amount(to_decimal(rate), precision.exh_rate_dec)


class DocumentEngine:
    """
    Record-level calculation for one document type.

    Contract:
        Stateless apart from its immutable profile and precision.
    Guarantees:
        - ``calculate_line`` honours the profile's entry mode.
        - ``header_totals`` honours the profile's netting mode.
        - ``on_rate_change`` = rate equalisation -> converted fields of
          every line -> header totals from scratch.
    """

    def __init__(self, profile: DocumentProfile, precision: PrecisionConfig) -> None:
        self.profile = profile
        self.precision = precision
        self.calculator = LineCalculator(precision)
        self.aggregator = HeaderAggregator(precision)

    @property
    def document_type(self) -> DocumentType:
        return self.profile.document_type

    def _log_scope(self):
        """Tag every record logged inside the block with this document type."""
        return LogContext.bind(document_type=self.document_type.value)

    def to_lines(self, records: Iterable[Mapping[str, Any]]) -> list[TransactionLine]:
        return [TransactionLine.from_record(r, self.profile.shape) for r in records]

    def to_records(self, lines: Iterable[TransactionLine]) -> list[dict[str, Any]]:
        return [l.to_record(self.profile.shape) for l in lines]

    def calculate_line(
        self,
        record: Mapping[str, Any],
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> dict[str, Any]:
        """Derive every amount of one row after the user edited it."""
        with self._log_scope():
            line = self.calculator.calculate_line(
                TransactionLine.from_record(record, self.profile.shape),
                rates,
                reporting_enabled,
                self.profile.source,
            )
        return line.to_record(self.profile.shape)

    def normalize_entry(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """
        Round the entered quantity and unit price to their display precision.

        Written back to the first quantity key the shape reads from.
        """
        shape = self.profile.shape
        line = self.calculator.normalize_entry(TransactionLine.from_record(record, shape))
        result = dict(record)
        qty_key = next((k for k in shape.qty_keys if record.get(k) is not None), shape.qty_keys[0])
        result[qty_key] = line.qty
        result[shape.unit_price] = line.unit_price
        return result

    def apply_tax_percentage(
        self,
        record: Mapping[str, Any],
        gst_percentage: Any,
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> dict[str, Any]:
        """Apply a looked-up tax percentage to a row and re-derive its tax."""
        with self._log_scope():
            line = self.calculator.apply_tax_percentage(
                TransactionLine.from_record(record, self.profile.shape),
                gst_percentage,
                rates,
                reporting_enabled,
            )
        return line.to_record(self.profile.shape)

    def recalculate_details(
        self,
        records: Iterable[Mapping[str, Any]],
        rates: ExchangeRates,
        reporting_enabled: bool,
    ) -> list[dict[str, Any]]:
        """Re-derive the converted fields of every row (rates changed)."""
        with self._log_scope():
            lines = self.calculator.recalculate_all(
                self.to_lines(records), rates, reporting_enabled
            )
        return self.to_records(lines)

    def header_totals(
        self,
        records: Iterable[Mapping[str, Any]],
        reporting_enabled: bool,
    ) -> HeaderTotals:
        """Recompute the header from the full details collection."""
        lines = self.to_lines(records)
        with self._log_scope():
            if self.profile.netting == NettingMode.DEBIT_CREDIT:
                return self.aggregator.calculate_header_totals_with_netting(
                    lines, reporting_enabled
                )
            return self.aggregator.calculate_header_totals(lines, reporting_enabled)

    def on_rate_change(
        self,
        records: Iterable[Mapping[str, Any]],
        exh_rate: Any,
        cty_exh_rate: Any,
        reporting_enabled: bool,
    ) -> tuple[list[dict[str, Any]], HeaderTotals]:
        """
        Handle an edit of the header's exchange rate(s).

        Returns:
            (updated detail records, recomputed header totals)
        """
        rates = ExchangeRates.for_document(exh_rate, cty_exh_rate, reporting_enabled)
        with self._log_scope():
            logger.info("document_rate_changed", extra={
                "exh_rate": str(rates.exh_rate),
                "cty_exh_rate": str(rates.cty_exh_rate),
                "reporting_enabled": reporting_enabled,
            })
            details = self.recalculate_details(records, rates, reporting_enabled)
            return details, self.header_totals(details, reporting_enabled)


def get_document_engine(
    document_type: DocumentType | str,
    precision: PrecisionConfig | Mapping[str, Any] | None = None,
) -> DocumentEngine:
    """
    Return the engine configured for ``document_type``.

    Raises:
        UnknownDocumentTypeError: document_type is not registered.
    """
    try:
        key = DocumentType(document_type)
    except ValueError:
        logger.error("document_type_not_found", extra={"document_type": str(document_type)})
        raise UnknownDocumentTypeError(
            str(document_type), sorted(t.value for t in _PROFILES)
        ) from None
    return DocumentEngine(_PROFILES[key], PrecisionConfig.coerce(precision))
