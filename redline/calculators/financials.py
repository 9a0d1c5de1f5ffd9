"""
Deal Financials Calculator

Derives the paid/unpaid revenue, gross profit, payout and 50/50 split
columns shown on the sales performance dashboard.
"""

from decimal import Decimal

from ..models import SUMMED_FINANCIAL_FIELDS, DealFinancials, DealRow, FinancialTotals
from .pipeline import days_between

ZERO = Decimal("0")
TWO = Decimal("2")

ACTIVE_BUCKETS = ("Pending", "P2 Ready", "Partial P2 Paid", "P2 Paid")
OVERALL_BUCKETS = ("On Hold", "Issue", "Canceled")


def _z(value: Decimal | None) -> Decimal:
    return value if value is not None else ZERO


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


def status_bucket(status: str | None) -> str:
    """Normalize a free-text deal status into a dashboard bucket.

    Order matters: "Partial P2 Paid" must be checked before "P2 Paid".
    """
    s = (status or "").strip().lower()
    if "pending" in s:
        return "Pending"
    if "p2 ready" in s:
        return "P2 Ready"
    if "partial" in s and "p2" in s and "paid" in s:
        return "Partial P2 Paid"
    if "p2 paid" in s:
        return "P2 Paid"
    if "hold" in s:
        return "On Hold"
    if "issue" in s:
        return "Issue"
    if "cancel" in s:
        return "Canceled"
    return (status or "").strip() or "Other"


class DealFinancialsCalculator:
    """Calculates derived financial fields per deal and across deals."""

    def calculate(self, row: DealRow) -> DealFinancials:
        """
        Calculate all derived fields for one deal.

        The 50/50 split applies only when both a sales rep and an appointment
        setter are named and the agent payout total is positive.
        """
        total_revenue = _z(row.rev)
        revenue_paid = _z(row.nova_nrg_rev_after_fee_amount)
        revenue_unpaid = total_revenue - revenue_paid
        percent_paid = (revenue_paid / total_revenue) * Decimal("100") if total_revenue else None

        gross_profit = _z(row.gross_profit)
        agent_paid_out = _z(row.agent_rev_after_fee_amount)
        gp_paid = revenue_paid - agent_paid_out
        gp_unpaid = gross_profit - gp_paid

        visionary_total = _z(row.visionary_revenue)
        visionary_paid_out = _z(row.visionary_rev_after_fee_amount)

        agent_total = _z(row.agent_pay)
        agent_pending = agent_total - agent_paid_out

        result = DealFinancials(
            row=row,
            payment_timeline=days_between(row.date_closed, row.paid_date),
            total_revenue=total_revenue,
            revenue_paid=revenue_paid,
            percent_paid=percent_paid,
            revenue_unpaid=revenue_unpaid,
            gross_profit=gross_profit,
            gp_paid=gp_paid,
            gp_unpaid=gp_unpaid,
            visionary_total=visionary_total,
            visionary_paid_out=visionary_paid_out,
            visionary_pending=visionary_total - visionary_paid_out,
            agent_total=agent_total,
            agent_paid_out=agent_paid_out,
            agent_pending=agent_pending,
            bucket=status_bucket(row.status),
        )

        if _filled(row.sales_rep) and _filled(row.appointment_setter) and agent_total > 0:
            self._apply_split(result)

        return result

    def calculate_all(self, rows: list[DealRow]) -> list[DealFinancials]:
        return [self.calculate(r) for r in rows]

    def totals(self, results: list[DealFinancials]) -> FinancialTotals:
        """Sum every money column; overall percent paid is 0 without revenue."""
        sums = {name: sum((getattr(r, name) for r in results), ZERO) for name in SUMMED_FINANCIAL_FIELDS}
        total_revenue = sums["total_revenue"]
        percent_paid = (sums["revenue_paid"] / total_revenue) * Decimal("100") if total_revenue else ZERO
        return FinancialTotals(total_deals=len(results), percent_paid=percent_paid, sums=sums)

    def status_summary(self, results: list[DealFinancials]) -> dict:
        """Count deals per status bucket.

        Active buckets are reported as a share of active deals, the rest as a
        share of all deals.
        """
        counts: dict[str, int] = {}
        for r in results:
            counts[r.bucket] = counts.get(r.bucket, 0) + 1

        overall_total = len(results)
        active_total = sum(counts.get(b, 0) for b in ACTIVE_BUCKETS)

        def pct_of(n: int, d: int) -> Decimal:
            return Decimal(n) / Decimal(d) * Decimal("100") if d else ZERO

        summary = {
            "overall_total": overall_total,
            "active_total": active_total,
            "counts": counts,
            "pct_of_active": {b: pct_of(counts.get(b, 0), active_total) for b in ACTIVE_BUCKETS},
            "pct_of_overall": {b: pct_of(counts.get(b, 0), overall_total) for b in OVERALL_BUCKETS},
        }
        return summary

    @staticmethod
    def _apply_split(result: DealFinancials) -> None:
        result.has_split = True
        result.split_revenue = result.total_revenue / TWO
        result.split_revenue_paid = result.revenue_paid / TWO
        result.split_revenue_unpaid = result.revenue_unpaid / TWO
        result.split_gp = result.gross_profit / TWO
        result.split_gp_paid = result.gp_paid / TWO
        result.split_gp_unpaid = result.gp_unpaid / TWO
        result.split_pay_total = result.agent_total / TWO
        result.split_paid_out = result.agent_paid_out / TWO
        result.split_pending = result.agent_pending / TWO
