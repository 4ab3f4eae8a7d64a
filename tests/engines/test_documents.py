"""
Tests for the per-document engines.

Covers:
- Registry lookup and unknown document types
- Entry mode (quantity vs. total) and record shape per document
- Netting mode per document
- The rate-change transition end to end
- Exchange-rate normalisation
"""

from decimal import Decimal

import pytest

from amount_engines.documents import (
    DocumentEngine,
    DocumentType,
    NettingMode,
    get_document_engine,
    normalize_exchange_rate,
)
from amount_engines.line_calculator import LineSource
from amount_kernel.domain.values import ExchangeRates, PrecisionConfig
from amount_kernel.exceptions import DocumentError, UnknownDocumentTypeError


class TestRegistry:
    """Tests for get_document_engine."""

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_every_type_registered(self, document_type):
        engine = get_document_engine(document_type)
        assert isinstance(engine, DocumentEngine)
        assert engine.document_type == document_type

    def test_lookup_by_string(self):
        engine = get_document_engine("ap_adjustment", {"amtDec": 3})
        assert engine.document_type == DocumentType.AP_ADJUSTMENT
        assert engine.precision.amt_dec == 3

    def test_unknown_type(self):
        with pytest.raises(UnknownDocumentTypeError) as exc_info:
            get_document_engine("gl_journal")

        err = exc_info.value
        assert err.code == "UNKNOWN_DOCUMENT_TYPE"
        assert err.document_type == "gl_journal"
        assert "ap_invoice" in err.available
        assert isinstance(err, DocumentError)

    def test_profiles(self):
        assert get_document_engine(DocumentType.AP_INVOICE).profile.source == LineSource.QUANTITY
        assert get_document_engine(DocumentType.AP_DEBIT_NOTE).profile.source == LineSource.TOTAL
        assert (
            get_document_engine(DocumentType.AR_ADJUSTMENT).profile.netting
            == NettingMode.DEBIT_CREDIT
        )
        assert get_document_engine(DocumentType.CB_GEN_RECEIPT).profile.netting == NettingMode.SIMPLE


class TestDocumentLines:
    """Record-level line operations."""

    def setup_method(self):
        self.rates = ExchangeRates(exh_rate=Decimal("3.75"))

    def test_debit_note_line(self):
        engine = get_document_engine(DocumentType.AP_DEBIT_NOTE)
        record = {"itemNo": 1, "chargeCode": "FRT", "totAmt": "200.00", "gstPercentage": 5}
        result = engine.calculate_line(record, self.rates, False)

        assert result["chargeCode"] == "FRT"
        assert result["gstAmt"] == Decimal("10.00")
        assert result["totLocalAmt"] == Decimal("750.00")
        assert result["gstLocalAmt"] == Decimal("37.50")

    def test_invoice_line_uses_bill_quantity(self):
        engine = get_document_engine(DocumentType.AR_INVOICE)
        record = {"billQTY": "4", "qty": "6", "unitPrice": "12.50", "gstPercentage": 0}
        result = engine.calculate_line(record, self.rates, False)

        assert result["totAmt"] == Decimal("50.00")
        assert result["totLocalAmt"] == Decimal("187.50")

    def test_batch_payment_line_uses_amount_keys(self):
        engine = get_document_engine(DocumentType.CB_BATCH_PAYMENT)
        result = engine.calculate_line({"amount": "100", "gstPercentage": 7}, self.rates, False)

        assert result["gstAmount"] == Decimal("7.00")
        assert result["localAmount"] == Decimal("375.00")
        assert result["gstLocalAmount"] == Decimal("26.25")
        assert "totAmt" not in result

    def test_operations_line_shows_after_tax(self):
        engine = get_document_engine(DocumentType.OPS_DEBIT_NOTE)
        result = engine.calculate_line(
            {"qty": 2, "unitPrice": "25", "gstPercentage": 10}, self.rates, False
        )

        assert result["totAmtAftGst"] == Decimal("55.00")

    def test_normalize_entry_writes_back_bill_quantity(self):
        engine = get_document_engine(DocumentType.AP_INVOICE, {"qtyDec": 1, "priceDec": 3})
        result = engine.normalize_entry({"billQTY": "2.26", "qty": "9", "unitPrice": "1.23456"})

        assert str(result["billQTY"]) == "2.3"
        assert result["qty"] == "9"
        assert str(result["unitPrice"]) == "1.235"

    def test_apply_tax_percentage(self):
        engine = get_document_engine(DocumentType.AP_CREDIT_NOTE)
        result = engine.apply_tax_percentage({"totAmt": "80.00"}, 9, self.rates, False)

        assert result["gstPercentage"] == Decimal("9")
        assert result["gstAmt"] == Decimal("7.20")
        assert result["gstLocalAmt"] == Decimal("27.00")


class TestHeaderTotals:
    """Netting mode follows the document type."""

    def test_adjustment_nets(self):
        engine = get_document_engine(DocumentType.AP_ADJUSTMENT)
        records = [{"isDebit": True, "totAmt": "40"}, {"isDebit": False, "totAmt": "100"}]
        totals = engine.header_totals(records, False)

        assert totals.is_debit is False
        assert totals.tot_amt == Decimal("60.00")

    def test_debit_note_sums(self):
        engine = get_document_engine(DocumentType.AR_DEBIT_NOTE)
        records = [{"isDebit": True, "totAmt": "40"}, {"isDebit": False, "totAmt": "100"}]
        totals = engine.header_totals(records, False)

        assert totals.is_debit is False
        assert totals.tot_amt == Decimal("140.00")


class TestRateChange:
    """Tests for on_rate_change."""

    def setup_method(self):
        self.engine = get_document_engine(DocumentType.AP_ADJUSTMENT, PrecisionConfig())
        rates = ExchangeRates(exh_rate=1)
        self.records = [
            self.engine.calculate_line(
                {"seqNo": 1, "isDebit": True, "totAmt": "100.00", "gstPercentage": 5}, rates, False
            ),
            self.engine.calculate_line(
                {"seqNo": 2, "isDebit": False, "totAmt": "30.00", "gstPercentage": 5}, rates, False
            ),
        ]

    def test_local_amounts_follow_rate(self):
        details, _ = self.engine.on_rate_change(self.records, 2, None, False)

        assert details[0]["totAmt"] == Decimal("100.00")
        assert details[0]["gstAmt"] == Decimal("5.00")
        assert details[0]["totLocalAmt"] == Decimal("200.00")
        assert details[1]["totLocalAmt"] == Decimal("60.00")
        assert [d["seqNo"] for d in details] == [1, 2]

    def test_header_recomputed(self):
        _, header = self.engine.on_rate_change(self.records, 2, None, False)

        assert header.is_debit is True
        assert header.tot_amt == Decimal("70.00")
        assert header.gst_amt == Decimal("3.50")
        assert header.tot_local_amt == Decimal("140.00")
        assert header.tot_local_amt_aft_gst == Decimal("147.00")

    def test_reporting_enabled_uses_reporting_rate(self):
        details, header = self.engine.on_rate_change(self.records, 2, "0.5", True)

        assert details[0]["totCtyAmt"] == Decimal("50.00")
        assert header.tot_cty_amt == Decimal("35.00")

    def test_reporting_disabled_zeroes_reporting_tier(self):
        details, header = self.engine.on_rate_change(self.records, 2, "0.5", False)

        assert details[0]["totCtyAmt"] == Decimal("0")
        assert header.tot_cty_amt == Decimal("0")

    def test_records_not_mutated(self):
        before = [dict(r) for r in self.records]
        self.engine.on_rate_change(self.records, 2, None, False)
        assert self.records == before


class TestNormalizeExchangeRate:
    """Tests for normalize_exchange_rate."""

    def test_rounds_to_rate_precision(self):
        assert str(normalize_exchange_rate("3.7512345", PrecisionConfig())) == "3.751235"

    def test_configured_precision(self):
        config = PrecisionConfig(exh_rate_dec=4)
        assert normalize_exchange_rate(0.266666, config) == Decimal("0.2667")

    def test_missing_rate_is_zero(self):
        assert normalize_exchange_rate(None, PrecisionConfig()) == Decimal("0")
