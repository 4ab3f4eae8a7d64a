"""
Module: amount_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the line
    calculator, the header aggregator and the per-document engines.  This
    is the canonical import surface for the form layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import amount_kernel (and sibling engine modules).
    MUST NOT import amount_config; callers resolve precision first and
    pass it in.

Invariants enforced:
    - Decimal-only arithmetic: every amount is a ``Decimal`` rounded
      through ``amount_kernel.domain.rounding``; floats never leak out.
    - Determinism: identical inputs always produce identical outputs.
    - Precision is explicit: every engine receives a ``PrecisionConfig``.

Failure modes:
    - UnknownDocumentTypeError from ``get_document_engine``.
    - InvalidPrecisionError propagated from ``PrecisionConfig`` coercion.

Audit relevance:
    Engine entry points are traced via the ``@traced_engine`` decorator
    (see ``amount_engines.tracer``), emitting AMOUNT_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from amount_engines import LineCalculator, HeaderAggregator
    from amount_engines import DocumentType, get_document_engine
"""

from amount_kernel.logging_config import get_logger

logger = get_logger("engines")

from amount_engines.documents import (
    DocumentEngine,
    DocumentProfile,
    DocumentType,
    NettingMode,
    get_document_engine,
    normalize_exchange_rate,
)
from amount_engines.header import (
    HeaderAggregator,
    HeaderTotals,
    TierSums,
    calculate_header_totals,
    calculate_header_totals_with_netting,
)
from amount_engines.line_calculator import (
    LineCalculator,
    LineSource,
    calculate_line,
)
from amount_engines.lines import (
    BILLING_SHAPE,
    DETAIL_AMOUNT_SHAPE,
    OPERATIONS_SHAPE,
    STANDARD_SHAPE,
    LineShape,
    TransactionLine,
)
from amount_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Lines
    "BILLING_SHAPE",
    "DETAIL_AMOUNT_SHAPE",
    "OPERATIONS_SHAPE",
    "STANDARD_SHAPE",
    "LineShape",
    "TransactionLine",
    # Line calculator
    "LineCalculator",
    "LineSource",
    "calculate_line",
    # Header
    "HeaderAggregator",
    "HeaderTotals",
    "TierSums",
    "calculate_header_totals",
    "calculate_header_totals_with_netting",
    # Documents
    "DocumentEngine",
    "DocumentProfile",
    "DocumentType",
    "NettingMode",
    "get_document_engine",
    "normalize_exchange_rate",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
