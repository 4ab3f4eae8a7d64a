"""
Hypothesis property tests for the amount engine.

Properties checked here:
- Rounding: idempotent, sign-symmetric, never more digits than asked
- Arithmetic: zero identities
- Line calculator: reporting-currency suppression, rate-change
  re-derivation leaves base amounts untouched
- Header: simple-sum total equals the running add of line totals;
  netting direction and magnitude agree with the signed net
- Permissive coercion never raises
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from amount_engines.header import HeaderAggregator
from amount_engines.line_calculator import LineCalculator, LineSource
from amount_engines.lines import TransactionLine
from amount_kernel.domain.arithmetic import add, multiplier_amount, percentage_amount, subtract
from amount_kernel.domain.rounding import round_amount
from amount_kernel.domain.values import ExchangeRates, PrecisionConfig, to_decimal

finite_decimals = st.decimals(
    min_value=Decimal("-1000000000"),
    max_value=Decimal("1000000000"),
    allow_nan=False,
    allow_infinity=False,
    places=6,
)
amounts = st.decimals(
    min_value=Decimal("-999999.99"),
    max_value=Decimal("999999.99"),
    allow_nan=False,
    allow_infinity=False,
    places=2,
)
rates = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("10000"),
    allow_nan=False,
    allow_infinity=False,
    places=6,
)
percentages = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    allow_nan=False,
    allow_infinity=False,
    places=2,
)
places = st.integers(min_value=0, max_value=8)


class TestRoundingProperties:
    """Rounding rule properties."""

    @given(x=finite_decimals, d=places)
    def test_idempotent(self, x, d):
        once = round_amount(x, d)
        assert round_amount(once, d) == once

    @given(x=finite_decimals, d=places)
    def test_sign_symmetric(self, x, d):
        assert round_amount(-x, d) == -round_amount(x, d)

    @given(x=finite_decimals, d=places)
    def test_exact_exponent(self, x, d):
        assert round_amount(x, d).as_tuple().exponent == -d

    @given(x=finite_decimals, d=places)
    def test_within_half_unit(self, x, d):
        assert abs(round_amount(x, d) - x) <= Decimal(1).scaleb(-d) / 2


class TestArithmeticProperties:
    """Zero identities."""

    @given(x=finite_decimals, d=places)
    def test_add_zero(self, x, d):
        assert add(x, 0, d) == round_amount(x, d)

    @given(x=finite_decimals, d=places)
    def test_subtract_zero(self, x, d):
        assert subtract(x, 0, d) == round_amount(x, d)

    @given(x=finite_decimals, d=places)
    def test_multiply_by_zero(self, x, d):
        assert multiplier_amount(x, 0, d) == 0

    @given(x=finite_decimals, d=places)
    def test_zero_percent(self, x, d):
        assert percentage_amount(x, 0, d) == 0


class TestLineProperties:
    """Line calculator properties."""

    def setup_method(self):
        self.calculator = LineCalculator(PrecisionConfig())

    @given(tot=amounts, pct=percentages, exh=rates, cty=rates)
    def test_reporting_suppressed(self, tot, pct, exh, cty):
        line = TransactionLine.of(tot_amt=tot, gst_percentage=pct)
        result = self.calculator.calculate_line(line, ExchangeRates(exh, cty), False)

        assert result.tot_cty_amt == 0
        assert result.gst_cty_amt == 0

    @given(tot=amounts, pct=percentages, old=rates, new=rates)
    @settings(max_examples=50)
    def test_rate_change_keeps_base_amounts(self, tot, pct, old, new):
        line = self.calculator.calculate_line(
            TransactionLine.of(tot_amt=tot, gst_percentage=pct), ExchangeRates(old, old), True
        )
        updated = self.calculator.recalculate_rates(line, ExchangeRates(new, new), True)

        assert updated.tot_amt == line.tot_amt
        assert updated.gst_amt == line.gst_amt
        assert updated.tot_local_amt == multiplier_amount(line.tot_amt, new, 2)

    @given(
        qty=st.decimals(min_value=0, max_value=10000, places=3),
        price=st.decimals(min_value=0, max_value=10000, places=4),
    )
    def test_quantity_source(self, qty, price):
        line = TransactionLine.of(qty=qty, unit_price=price)
        result = self.calculator.calculate_line(
            line, ExchangeRates(1, 1), False, LineSource.QUANTITY
        )
        assert result.tot_amt == round_amount(qty * price, 2)


class TestHeaderProperties:
    """Header aggregation properties."""

    def setup_method(self):
        self.aggregator = HeaderAggregator(PrecisionConfig())

    @given(values=st.lists(amounts, max_size=30))
    def test_simple_sum_matches_running_add(self, values):
        lines = [TransactionLine.of(tot_amt=v) for v in values]
        totals = self.aggregator.calculate_header_totals(lines, False)

        expected = Decimal("0")
        for v in values:
            expected = add(expected, v, 2)
        assert totals.tot_amt == expected

    @given(
        entries=st.lists(
            st.tuples(st.booleans(), st.decimals(min_value=0, max_value=99999, places=2)),
            max_size=20,
        )
    )
    def test_netting_direction_and_magnitude(self, entries):
        lines = [TransactionLine.of(is_debit=d, tot_amt=v) for d, v in entries]
        totals = self.aggregator.calculate_header_totals_with_netting(lines, False)

        debit = sum((v for d, v in entries if d), Decimal("0"))
        credit = sum((v for d, v in entries if not d), Decimal("0"))
        assert totals.is_debit == (debit > credit)
        assert totals.tot_amt == abs(debit - credit)
        assert totals.tot_amt >= 0


class TestCoercionProperties:
    """to_decimal never raises."""

    @given(value=st.one_of(st.none(), st.text(), st.floats(), st.integers(), st.booleans()))
    def test_never_raises(self, value):
        result = to_decimal(value)
        assert isinstance(result, Decimal)
        assert result.is_finite()
