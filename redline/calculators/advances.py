"""
Advances Summary

Attributes open pipeline deals to the reps and setters who sold them, and
summarizes the cash advance ledger per agent. A deal with an appointment
setter is shared 50/50 between rep and setter; otherwise the rep carries
all of it.
"""

from datetime import date
from decimal import Decimal

from ..models import AdvanceEntry, AdvanceLedger, AgentStats, DealRow

ELIGIBLE_STATUSES = ("pending", "p2 ready", "partial p2 paid")
PRE_P2_STATUSES = ("pending", "p2 ready")


def _z(value: Decimal | None) -> Decimal:
    return value if value is not None else Decimal("0")


class AdvanceAttributor:
    """Builds per-person AgentStats from deals-view rows."""

    FULL_SHARE = Decimal("1")
    HALF_SHARE = Decimal("0.5")

    def attribute(self, rows: list[DealRow]) -> dict[str, AgentStats]:
        """
        Accumulate each eligible deal into its rep's (and setter's) stats.

        Only Pending, P2 Ready and Partial P2 Paid deals with a sales rep
        count. Pre-P2 deal counts exclude Partial P2 Paid.
        """
        stats: dict[str, AgentStats] = {}

        for row in rows:
            rep = (row.sales_rep or "").strip()
            setter = (row.appointment_setter or "").strip()
            status = (row.status or "").strip().lower()
            if not rep or status not in ELIGIBLE_STATUSES:
                continue

            rep_share = self.HALF_SHARE if setter else self.FULL_SHARE
            pre_p2 = status in PRE_P2_STATUSES

            self._accumulate(stats.setdefault(rep, AgentStats()), row, rep_share, pre_p2)
            if setter:
                self._accumulate(stats.setdefault(setter, AgentStats()), row, self.HALF_SHARE, pre_p2)

        for s in stats.values():
            self._derive(s)

        return stats

    def totals(self, stats: dict[str, AgentStats]) -> AgentStats:
        total = AgentStats()
        for s in stats.values():
            for name in vars(total):
                setattr(total, name, getattr(total, name) + getattr(s, name))
        return total

    @staticmethod
    def _accumulate(s: AgentStats, row: DealRow, share: Decimal, pre_p2: bool) -> None:
        s.total_future_revenues += _z(row.rev) * share
        s.revenues_paid += _z(row.nova_nrg_rev_after_fee_amount) * share
        s.total_future_gross_profit += _z(row.gross_profit) * share
        s.remaining_payout_total += _z(row.agent_pay) * share
        s.remaining_total_paid_out += _z(row.agent_rev_after_fee_amount) * share
        if pre_p2:
            s.remaining_deals_pre_p2 += share

    @staticmethod
    def _derive(s: AgentStats) -> None:
        s.revenues_unpaid = s.total_future_revenues - s.revenues_paid
        s.gross_profit_paid = s.revenues_paid - s.remaining_total_paid_out
        s.gross_profit_unpaid = s.total_future_gross_profit - s.gross_profit_paid
        s.remaining_agent_unpaid = s.remaining_payout_total - s.remaining_total_paid_out


class AdvanceLedgerCalculator:
    """
    Summarizes the cash advance ledger per agent.

    Leverage compares what an agent still owes (repayments - advances) with
    the payouts still due to them on open deals (AgentStats.remaining_agent_unpaid).
    """

    HIGH_LEVERAGE = Decimal("0.5")
    MEDIUM_LEVERAGE = Decimal("0.15")

    def summarize(
        self, entries: list[AdvanceEntry], deal_stats: dict[str, AgentStats] | None = None
    ) -> dict[str, AdvanceLedger]:
        """Build one AdvanceLedger per agent with at least one ledger entry."""
        deal_stats = deal_stats or {}
        by_agent: dict[str, list[tuple[int, AdvanceEntry]]] = {}
        for index, entry in enumerate(entries):
            if entry.agent_name:
                by_agent.setdefault(entry.agent_name, []).append((index, entry))

        ledgers = {}
        for name, indexed in by_agent.items():
            ordered = [e for _, e in sorted(indexed, key=lambda item: self._order_key(*item))]
            ledgers[name] = self._ledger(name, ordered, deal_stats.get(name))
        return ledgers

    def totals(self, ledgers: dict[str, AdvanceLedger]) -> AdvanceLedger:
        """TOTALS row; leverage is per agent only."""
        total = AdvanceLedger(agent_name="TOTALS")
        for ledger in ledgers.values():
            total.transaction_count += ledger.transaction_count
            total.total_advances += ledger.total_advances
            total.total_repayments += ledger.total_repayments
            total.current_remaining_balance += ledger.current_remaining_balance
            total.previous_balance += ledger.previous_balance
        total.repayment_rate = self.repayment_rate(total.total_repayments, total.total_advances)
        total.difference = total.total_repayments - total.total_advances
        return total

    @staticmethod
    def repayment_rate(repayments: Decimal, advances: Decimal) -> Decimal | None:
        if advances <= 0:
            return None
        return repayments / advances

    @staticmethod
    def leverage(difference: Decimal, stats: AgentStats | None) -> Decimal:
        """difference / remaining agent unpaid; 0 when there is nothing unpaid."""
        if stats is None or stats.remaining_agent_unpaid == 0:
            return Decimal("0")
        return difference / stats.remaining_agent_unpaid

    def leverage_band(self, leverage: Decimal) -> str:
        size = abs(leverage)
        if size > self.HIGH_LEVERAGE:
            return "high"
        if size > self.MEDIUM_LEVERAGE:
            return "medium"
        if size > 0:
            return "low"
        return "none"

    def _ledger(self, name: str, ordered: list[AdvanceEntry], stats: AgentStats | None) -> AdvanceLedger:
        ledger = AdvanceLedger(agent_name=name, transaction_count=len(ordered))
        for entry in ordered:
            ledger.total_advances += entry.advance
            ledger.total_repayments += entry.amount_received_from_agent
            ledger.current_remaining_balance += entry.net

        latest = ordered[-1]
        ledger.last_transaction_date = latest.entry_date
        ledger.previous_balance = ledger.current_remaining_balance - latest.net
        ledger.latest_repayment = latest.amount_received_from_agent
        ledger.latest_advance = latest.advance

        ledger.repayment_rate = self.repayment_rate(ledger.total_repayments, ledger.total_advances)
        ledger.difference = ledger.total_repayments - ledger.total_advances
        ledger.leverage = self.leverage(ledger.difference, stats)
        ledger.leverage_band = self.leverage_band(ledger.leverage)
        return ledger

    @staticmethod
    def _order_key(index: int, entry: AdvanceEntry) -> tuple:
        # Ledger order: date, then creation time, then input order
        return (entry.entry_date or date.min, entry.created_at or "", index)
