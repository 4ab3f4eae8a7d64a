"""
amount_engines.lines -- Transaction line value type and record shapes.

Responsibility:
    Defines ``TransactionLine``, the typed, fully-defaulted representation
    of one charge/item row, and ``LineShape``, the adapter that maps the
    engine's field names onto the keys a particular document type uses in
    its plain record dicts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the line calculator, the header aggregator and the
    document engines.

Invariants enforced:
    - Every numeric field of a TransactionLine is a finite Decimal.
      ``from_record`` applies the "parse or fall back to zero" coercion
      once, at the boundary; engine code never re-checks for missing values.
    - Record fields the engine does not own (identifiers, descriptions,
      account codes, ...) pass through ``to_record`` unchanged.
    - Identifiers (item_no, seq_no) are opaque and never interpreted.

Failure modes:
    - None. Malformed numeric input becomes Decimal("0").
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from amount_kernel.domain.values import to_decimal, to_flag

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LineShape:
    """
    Record-key mapping for one document family.

    ``qty_keys`` is ordered: the first key present with a non-None value
    supplies the quantity (invoices bill on ``billQTY`` and fall back to
    the physical ``qty``). ``tot_amt_aft_gst`` is None for documents whose
    rows do not display a per-line after-tax figure.
    """

    name: str
    qty_keys: tuple[str, ...] = ("qty",)
    unit_price: str = "unitPrice"
    tot_amt: str = "totAmt"
    gst_percentage: str = "gstPercentage"
    gst_amt: str = "gstAmt"
    tot_local_amt: str = "totLocalAmt"
    gst_local_amt: str = "gstLocalAmt"
    tot_cty_amt: str = "totCtyAmt"
    gst_cty_amt: str = "gstCtyAmt"
    is_debit: str = "isDebit"
    item_no: str = "itemNo"
    seq_no: str = "seqNo"
    tot_amt_aft_gst: str | None = None

    def derived_keys(self) -> dict[str, str]:
        """Engine field -> record key for every field the engine writes."""
        keys = {
            "gst_percentage": self.gst_percentage,
            "tot_amt": self.tot_amt,
            "gst_amt": self.gst_amt,
            "tot_local_amt": self.tot_local_amt,
            "gst_local_amt": self.gst_local_amt,
            "tot_cty_amt": self.tot_cty_amt,
            "gst_cty_amt": self.gst_cty_amt,
        }
        if self.tot_amt_aft_gst is not None:
            keys["tot_amt_aft_gst"] = self.tot_amt_aft_gst
        return keys


# AP/AR debit & credit notes, adjustments, CB payments and receipts.
STANDARD_SHAPE = LineShape(name="standard")

# AP/AR invoices: billing quantity drives the amount.
BILLING_SHAPE = replace(STANDARD_SHAPE, name="billing", qty_keys=("billQTY", "qty"))

# CB batch payments and bank-transfer style detail forms.
DETAIL_AMOUNT_SHAPE = replace(
    STANDARD_SHAPE,
    name="detail_amount",
    tot_amt="amount",
    gst_amt="gstAmount",
    tot_local_amt="localAmount",
    gst_local_amt="gstLocalAmount",
    tot_cty_amt="ctyAmount",
    gst_cty_amt="gstCtyAmount",
)

# Operations (job order) debit notes show totAmtAftGst on every row.
OPERATIONS_SHAPE = replace(STANDARD_SHAPE, name="operations", tot_amt_aft_gst="totAmtAftGst")


@dataclass(frozen=True)
class TransactionLine:
    """
    One charge/item row of a document.

    Contract:
        Holds the quantity/price inputs, the tax percentage and every
        derived amount per currency tier (base, local, reporting).

    Guarantees:
        - Immutable; the engines return new instances via ``replace``.
        - All amounts are Decimal, never float or None.

    Non-goals:
        - Does NOT validate that the amounts are mutually consistent;
          that is the line calculator's job.
    """

    qty: Decimal = _ZERO
    unit_price: Decimal = _ZERO
    tot_amt: Decimal = _ZERO
    gst_percentage: Decimal = _ZERO
    gst_amt: Decimal = _ZERO
    tot_local_amt: Decimal = _ZERO
    gst_local_amt: Decimal = _ZERO
    tot_cty_amt: Decimal = _ZERO
    gst_cty_amt: Decimal = _ZERO
    tot_amt_aft_gst: Decimal = _ZERO
    is_debit: bool = False
    item_no: Any = None
    seq_no: Any = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @classmethod
    def of(cls, **kwargs: Any) -> TransactionLine:
        """
        Build a line from loosely-typed keyword values.

        Numeric fields go through ``to_decimal`` and ``is_debit`` through
        ``to_flag``; anything unset is zero.
        """
        numeric = {
            name: to_decimal(kwargs.pop(name))
            for name in _NUMERIC_FIELDS
            if name in kwargs
        }
        if "is_debit" in kwargs:
            kwargs["is_debit"] = to_flag(kwargs["is_debit"])
        return cls(**numeric, **kwargs)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        shape: LineShape = STANDARD_SHAPE,
    ) -> TransactionLine:
        """
        Defaulting constructor: read a plain record using ``shape``.

        Every numeric field is coerced once; the original record is kept
        in ``extra`` so ``to_record`` can return the same shape.
        """
        qty_raw = None
        for key in shape.qty_keys:
            if record.get(key) is not None:
                qty_raw = record[key]
                break

        return cls(
            qty=to_decimal(qty_raw),
            unit_price=to_decimal(record.get(shape.unit_price)),
            tot_amt=to_decimal(record.get(shape.tot_amt)),
            gst_percentage=to_decimal(record.get(shape.gst_percentage)),
            gst_amt=to_decimal(record.get(shape.gst_amt)),
            tot_local_amt=to_decimal(record.get(shape.tot_local_amt)),
            gst_local_amt=to_decimal(record.get(shape.gst_local_amt)),
            tot_cty_amt=to_decimal(record.get(shape.tot_cty_amt)),
            gst_cty_amt=to_decimal(record.get(shape.gst_cty_amt)),
            tot_amt_aft_gst=(
                to_decimal(record.get(shape.tot_amt_aft_gst))
                if shape.tot_amt_aft_gst is not None
                else _ZERO
            ),
            is_debit=to_flag(record.get(shape.is_debit)),
            item_no=record.get(shape.item_no),
            seq_no=record.get(shape.seq_no),
            extra=dict(record),
        )

    def to_record(self, shape: LineShape = STANDARD_SHAPE) -> dict[str, Any]:
        """Write derived fields back over the original record's keys."""
        record = dict(self.extra)
        if self.item_no is not None:
            record[shape.item_no] = self.item_no
        if self.seq_no is not None:
            record[shape.seq_no] = self.seq_no
        if self.is_debit or shape.is_debit in record:
            record[shape.is_debit] = self.is_debit
        for name, key in shape.derived_keys().items():
            record[key] = getattr(self, name)
        return record


_NUMERIC_FIELDS = (
    "qty",
    "unit_price",
    "tot_amt",
    "gst_percentage",
    "gst_amt",
    "tot_local_amt",
    "gst_local_amt",
    "tot_cty_amt",
    "gst_cty_amt",
    "tot_amt_aft_gst",
)
