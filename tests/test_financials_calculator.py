"""
Unit Tests for Deal Financials Calculator

Tests verify the paid/unpaid splits, the 50/50 rep/setter split conditions
and the status buckets.
"""

from datetime import date
from decimal import Decimal

import pytest

from redline.calculators.financials import DealFinancialsCalculator, status_bucket
from redline.models import DealRow


def make_row(**kwargs) -> DealRow:
    defaults = dict(
        sales_rep="Jordan",
        appointment_setter="Casey",
        status="Pending",
        rev=Decimal("10000"),
        nova_nrg_rev_after_fee_amount=Decimal("4000"),
        gross_profit=Decimal("6000"),
        agent_pay=Decimal("3000"),
        agent_rev_after_fee_amount=Decimal("1000"),
        visionary_revenue=Decimal("800"),
        visionary_rev_after_fee_amount=Decimal("200"),
    )
    defaults.update(kwargs)
    return DealRow(**defaults)


@pytest.fixture
def calculator():
    return DealFinancialsCalculator()


class TestRevenueAndGrossProfit:

    def test_revenue_paid_unpaid(self, calculator):
        result = calculator.calculate(make_row())

        assert result.total_revenue == Decimal("10000")
        assert result.revenue_paid == Decimal("4000")
        assert result.revenue_unpaid == Decimal("6000")
        assert result.percent_paid == Decimal("40")

    def test_gross_profit_paid_unpaid(self, calculator):
        """GP paid = revenue paid - agent paid out; GP unpaid = GP - GP paid."""
        result = calculator.calculate(make_row())

        assert result.gp_paid == Decimal("3000")
        assert result.gp_unpaid == Decimal("3000")

    def test_agent_and_visionary_pending(self, calculator):
        result = calculator.calculate(make_row())

        assert result.agent_pending == Decimal("2000")
        assert result.visionary_pending == Decimal("600")

    def test_percent_paid_none_without_revenue(self, calculator):
        result = calculator.calculate(make_row(rev=None, nova_nrg_rev_after_fee_amount=None))

        assert result.total_revenue == Decimal("0")
        assert result.percent_paid is None

    def test_payment_timeline(self, calculator):
        row = make_row(date_closed=date(2024, 3, 1), paid_date=date(2024, 4, 15))
        assert calculator.calculate(row).payment_timeline == 45

    def test_payment_timeline_none_when_unpaid(self, calculator):
        row = make_row(date_closed=date(2024, 3, 1))
        assert calculator.calculate(row).payment_timeline is None


class TestFiftyFiftySplit:

    def test_split_applies_with_rep_setter_and_payout(self, calculator):
        result = calculator.calculate(make_row())

        assert result.has_split is True
        assert result.split_revenue == Decimal("5000")
        assert result.split_revenue_paid == Decimal("2000")
        assert result.split_revenue_unpaid == Decimal("3000")
        assert result.split_gp == Decimal("3000")
        assert result.split_gp_paid == Decimal("1500")
        assert result.split_gp_unpaid == Decimal("1500")
        assert result.split_pay_total == Decimal("1500")
        assert result.split_paid_out == Decimal("500")
        assert result.split_pending == Decimal("1000")

    def test_no_split_without_setter(self, calculator):
        result = calculator.calculate(make_row(appointment_setter="   "))

        assert result.has_split is False
        assert result.split_revenue == Decimal("0")
        assert result.split_pay_total == Decimal("0")

    def test_no_split_without_rep(self, calculator):
        assert calculator.calculate(make_row(sales_rep=None)).has_split is False

    def test_no_split_when_agent_pay_zero(self, calculator):
        assert calculator.calculate(make_row(agent_pay=Decimal("0"))).has_split is False


class TestStatusBucket:

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("Pending", "Pending"),
            ("pending - docs", "Pending"),
            ("P2 Ready", "P2 Ready"),
            ("Partial P2 Paid", "Partial P2 Paid"),
            ("P2 Paid", "P2 Paid"),
            ("On Hold", "On Hold"),
            ("Permit Issue", "Issue"),
            ("Cancelled", "Canceled"),
            ("Installed", "Installed"),
            (None, "Other"),
            ("  ", "Other"),
        ],
    )
    def test_buckets(self, status, expected):
        assert status_bucket(status) == expected


class TestTotalsAndSummary:

    def test_totals_sum_columns(self, calculator):
        results = calculator.calculate_all([make_row(), make_row(appointment_setter=None)])
        totals = calculator.totals(results)

        assert totals.total_deals == 2
        assert totals.sums["total_revenue"] == Decimal("20000")
        assert totals.sums["split_revenue"] == Decimal("5000")
        assert totals.percent_paid == Decimal("40")

    def test_totals_percent_zero_without_revenue(self, calculator):
        totals = calculator.totals([])
        assert totals.total_deals == 0
        assert totals.percent_paid == Decimal("0")

    def test_status_summary(self, calculator):
        rows = [
            make_row(status="Pending"),
            make_row(status="Pending"),
            make_row(status="P2 Paid"),
            make_row(status="Canceled"),
        ]
        summary = calculator.status_summary(calculator.calculate_all(rows))

        assert summary["overall_total"] == 4
        assert summary["active_total"] == 3
        assert summary["counts"]["Pending"] == 2
        assert summary["pct_of_overall"]["Canceled"] == Decimal("25")
        assert round(summary["pct_of_active"]["Pending"], 2) == Decimal("66.67")
