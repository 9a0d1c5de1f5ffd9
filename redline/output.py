"""
Output Builder

Constructs JSON-safe API responses from engine results.
"""

from decimal import Decimal
from typing import Optional

from .models import (
    AdvanceLedger, AgentStats, AgingRow, CommissionRule, DealFinancials, FinancialTotals,
    PricingRule, PricingSnapshot, StatRow,
)


def to_money(value: Optional[Decimal]) -> Optional[float]:
    """Convert Decimal to float with 2 decimal places."""
    if value is None:
        return None
    return round(float(value), 2)


def to_number(value: Optional[Decimal], places: int = 4) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), places)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class OutputBuilder:
    """Builds the output dictionaries returned by the API."""

    def rule_summary(self, rule, status: Optional[str] = None) -> Optional[dict]:
        """Short description of a resolved rule; None when nothing matched."""
        if rule is None:
            return None
        summary = {
            "id": rule.id,
            "name": rule.name,
            "priority": rule.priority,
            "scope": {name: getattr(rule, name) for name in rule.SCOPE_FIELDS},
            "effective_start": _iso(rule.effective_start),
            "effective_end": _iso(rule.effective_end),
        }
        if status is not None:
            summary["status"] = status
        if isinstance(rule, PricingRule):
            summary.update({
                "rule_type": rule.rule_type,
                "base_ppw": to_number(rule.base_ppw),
                "redline_ppw": to_number(rule.redline_ppw),
                "target_margin_pct": to_number(rule.target_margin_pct, 2),
            })
        elif isinstance(rule, CommissionRule):
            summary.update({
                "commission_basis": rule.commission_basis,
                "agent_commission_pct": to_number(rule.agent_commission_pct, 2),
                "agent_flat_amount": to_money(rule.agent_flat_amount),
                "manager_commission_pct": to_number(rule.manager_commission_pct, 2),
                "manager_flat_amount": to_money(rule.manager_flat_amount),
                "setter_commission_pct": to_number(rule.setter_commission_pct, 2),
                "setter_flat_amount": to_money(rule.setter_flat_amount),
            })
        return summary

    def snapshot(self, snapshot: PricingSnapshot) -> dict:
        """Snapshot record in the shape the persistence layer stores."""
        return {
            "deal_id": snapshot.deal_id,
            "as_of": _iso(snapshot.as_of),
            "pricing_rule_id": snapshot.pricing_rule_id,
            "commission_rule_id": snapshot.commission_rule_id,
            "base_ppw": to_number(snapshot.base_ppw),
            "redline_ppw": to_number(snapshot.redline_ppw),
            "net_ppw": to_number(snapshot.net_ppw),
            "agent_cost_basis": to_money(snapshot.agent_cost_basis),
            "contract_value": to_money(snapshot.contract_value),
            "total_adders": to_money(snapshot.total_adders),
            "contract_net_price": to_money(snapshot.contract_net_price),
            "agent_commission_pct": to_number(snapshot.agent_commission_pct, 2),
            "agent_payout_amount": to_money(snapshot.agent_payout_amount),
            "manager_commission_pct": to_number(snapshot.manager_commission_pct, 2),
            "manager_payout_amount": to_money(snapshot.manager_payout_amount),
            "setter_payout_amount": to_money(snapshot.setter_payout_amount),
            "margin_pct": to_number(snapshot.margin_pct, 2),
            "gross_profit": to_money(snapshot.gross_profit),
            "adders_snapshot": [
                {
                    "name": a.name,
                    "qty": to_number(a.qty),
                    "unit_price": to_money(a.unit_price),
                    "total": to_money(a.total),
                }
                for a in snapshot.adders
            ],
        }

    def financials(self, result: DealFinancials) -> dict:
        row = result.row
        return {
            "id": row.id,
            "company": row.company,
            "customer_name": row.customer_name,
            "sales_rep": row.sales_rep,
            "appointment_setter": row.appointment_setter,
            "status": row.status,
            "bucket": result.bucket,
            "payment_timeline": result.payment_timeline,
            "total_revenue": to_money(result.total_revenue),
            "revenue_paid": to_money(result.revenue_paid),
            "percent_paid": to_number(result.percent_paid, 2),
            "revenue_unpaid": to_money(result.revenue_unpaid),
            "gross_profit": to_money(result.gross_profit),
            "gp_paid": to_money(result.gp_paid),
            "gp_unpaid": to_money(result.gp_unpaid),
            "visionary_total": to_money(result.visionary_total),
            "visionary_paid_out": to_money(result.visionary_paid_out),
            "visionary_pending": to_money(result.visionary_pending),
            "agent_total": to_money(result.agent_total),
            "agent_paid_out": to_money(result.agent_paid_out),
            "agent_pending": to_money(result.agent_pending),
            "has_split": result.has_split,
            "split_revenue": to_money(result.split_revenue),
            "split_revenue_paid": to_money(result.split_revenue_paid),
            "split_revenue_unpaid": to_money(result.split_revenue_unpaid),
            "split_gp": to_money(result.split_gp),
            "split_gp_paid": to_money(result.split_gp_paid),
            "split_gp_unpaid": to_money(result.split_gp_unpaid),
            "split_pay_total": to_money(result.split_pay_total),
            "split_paid_out": to_money(result.split_paid_out),
            "split_pending": to_money(result.split_pending),
        }

    def totals(self, totals: FinancialTotals) -> dict:
        output = {name: to_money(value) for name, value in totals.sums.items()}
        output["total_deals"] = totals.total_deals
        output["percent_paid"] = to_number(totals.percent_paid, 2)
        return output

    def status_summary(self, summary: dict) -> dict:
        return {
            "overall_total": summary["overall_total"],
            "active_total": summary["active_total"],
            "counts": summary["counts"],
            "pct_of_active": {k: to_number(v, 2) for k, v in summary["pct_of_active"].items()},
            "pct_of_overall": {k: to_number(v, 2) for k, v in summary["pct_of_overall"].items()},
        }

    def stat_rows(self, rows: list[StatRow]) -> list[dict]:
        return [
            {
                "label": r.label,
                "count": r.count,
                "values": {k: (round(v, 2) if v is not None else None) for k, v in r.values.items()},
            }
            for r in rows
        ]

    def aging_rows(self, rows: list[AgingRow]) -> list[dict]:
        return [{"label": r.label, "buckets": dict(r.buckets), "total": r.total} for r in rows]

    def agent_stats(self, stats: AgentStats) -> dict:
        output = {name: to_money(value) for name, value in vars(stats).items()}
        # Deal counts are fractional when shared with a setter
        output["remaining_deals_pre_p2"] = float(stats.remaining_deals_pre_p2)
        return output

    def advance_ledger(self, ledger: AdvanceLedger) -> dict:
        return {
            "agent_name": ledger.agent_name,
            "transaction_count": ledger.transaction_count,
            "last_transaction_date": _iso(ledger.last_transaction_date),
            "previous_balance": to_money(ledger.previous_balance),
            "latest_repayment": to_money(ledger.latest_repayment),
            "latest_advance": to_money(ledger.latest_advance),
            "current_remaining_balance": to_money(ledger.current_remaining_balance),
            "total_repayments": to_money(ledger.total_repayments),
            "total_advances": to_money(ledger.total_advances),
            "repayment_rate": to_number(ledger.repayment_rate),
            "difference": to_money(ledger.difference),
            "leverage": to_number(ledger.leverage),
            "leverage_band": ledger.leverage_band,
        }
