"""Tests for the engine tracer (amount_engines/tracer.py)."""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from io import StringIO

import pytest

from amount_engines.header import HeaderAggregator
from amount_engines.lines import TransactionLine
from amount_engines.tracer import compute_input_fingerprint, traced_engine
from amount_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


@pytest.fixture()
def trace_stream():
    reset_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level=logging.DEBUG)
    yield stream
    reset_logging()


def _traces(stream: StringIO) -> list[dict]:
    records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
    return [r for r in records if r["message"] == "AMOUNT_ENGINE_TRACE"]


@dataclass(frozen=True)
class _Point:
    x: Decimal
    y: Decimal


class TestFingerprint:
    """Tests for compute_input_fingerprint."""

    def test_deterministic(self):
        args = {"amount": Decimal("1.00"), "codes": ["A", "B"]}
        fp1 = compute_input_fingerprint(("amount", "codes"), args)
        fp2 = compute_input_fingerprint(("amount", "codes"), dict(args))
        assert fp1 == fp2
        assert len(fp1) == 16

    def test_sensitive_to_values(self):
        fp1 = compute_input_fingerprint(("amount",), {"amount": Decimal("1.00")})
        fp2 = compute_input_fingerprint(("amount",), {"amount": Decimal("1.01")})
        assert fp1 != fp2

    def test_dict_key_order_ignored(self):
        fp1 = compute_input_fingerprint(("m",), {"m": {"a": 1, "b": 2}})
        fp2 = compute_input_fingerprint(("m",), {"m": {"b": 2, "a": 1}})
        assert fp1 == fp2

    def test_dataclass_fields_used(self):
        fp1 = compute_input_fingerprint(("p",), {"p": _Point(Decimal("1"), Decimal("2"))})
        fp2 = compute_input_fingerprint(("p",), {"p": _Point(Decimal("1"), Decimal("3"))})
        assert fp1 != fp2

    def test_missing_field_is_null(self):
        fp1 = compute_input_fingerprint(("absent",), {})
        fp2 = compute_input_fingerprint(("absent",), {"absent": None})
        assert fp1 == fp2


class TestTracedEngine:
    """Tests for the @traced_engine decorator."""

    def test_emits_trace(self, trace_stream):
        @traced_engine("demo_engine", "2.1", fingerprint_fields=("value",))
        def double(value):
            return value * 2

        assert double(Decimal("4")) == Decimal("8")

        traces = _traces(trace_stream)
        assert len(traces) == 1
        trace = traces[0]
        assert trace["trace_type"] == "AMOUNT_ENGINE_TRACE"
        assert trace["engine_name"] == "demo_engine"
        assert trace["engine_version"] == "2.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("value",), {"value": Decimal("4")}
        )
        assert "duration_ms" in trace

    def test_positional_and_keyword_fingerprints_match(self, trace_stream):
        @traced_engine("demo_engine", "1.0", fingerprint_fields=("a", "b"))
        def combine(a, b):
            return a + b

        combine(1, 2)
        combine(a=1, b=2)

        traces = _traces(trace_stream)
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_preserves_metadata(self):
        @traced_engine("demo_engine", "1.0")
        def documented():
            """Docstring survives."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring survives."

    def test_engine_methods_traced(self, trace_stream):
        aggregator = HeaderAggregator()
        aggregator.calculate_header_totals([TransactionLine.of(tot_amt="1")], False)

        traces = _traces(trace_stream)
        assert traces[0]["engine_name"] == "header_aggregator"
        assert traces[0]["function"] == "HeaderAggregator.calculate_header_totals"

    def test_exception_propagates_without_trace(self, trace_stream):
        @traced_engine("demo_engine", "1.0")
        def broken():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            broken()
        assert _traces(trace_stream) == []
