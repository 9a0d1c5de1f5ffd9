"""
Snapshot Builder

Assembles the point-in-time pricing record for a deal from its resolved rules.
The record is what gets locked into the audit trail; this module never writes it.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..models import AdderLine, CommissionRule, PricingRule, PricingSnapshot
from .payout import CommissionPayoutCalculator, quantize_money


class SnapshotBuilder:
    """Builds a PricingSnapshot from resolved rules and deal numbers."""

    WATTS_PER_KW = Decimal("1000")

    def __init__(self, payout_calculator: CommissionPayoutCalculator | None = None):
        self.payout_calculator = payout_calculator or CommissionPayoutCalculator()

    def build(
        self,
        deal_id: str | None,
        as_of: date,
        pricing_rule: PricingRule | None,
        commission_rule: CommissionRule | None,
        contract_value: Decimal,
        kw_system: Decimal,
        adders: list[AdderLine],
    ) -> PricingSnapshot:
        """
        Calculate all snapshot fields.

        - total_adders = Σ qty × unit_price
        - contract_net_price = contract_value - total_adders
        - net_ppw = contract_net_price / watts
        - agent_cost_basis = redline_ppw × watts
        - gross_profit = contract_net_price - all payouts
        - margin_pct = gross_profit / contract_net_price × 100

        A missing rule leaves its fields as None; deciding what that means
        (zero payout, manual pricing) is up to the caller.
        """
        total_adders = quantize_money(sum((a.total for a in adders), Decimal("0")))
        net_price = contract_value - total_adders
        watts = kw_system * self.WATTS_PER_KW

        snapshot = PricingSnapshot(
            deal_id=deal_id,
            as_of=as_of,
            contract_value=quantize_money(contract_value),
            total_adders=total_adders,
            contract_net_price=quantize_money(net_price),
            net_ppw=self._per_watt(net_price, watts),
            adders=list(adders),
        )

        if pricing_rule is not None:
            self._apply_pricing(snapshot, pricing_rule, watts)

        if commission_rule is not None:
            self._apply_commission(snapshot, commission_rule, contract_value, net_price, kw_system)

        return snapshot

    def _apply_pricing(self, snapshot: PricingSnapshot, rule: PricingRule, watts: Decimal) -> None:
        snapshot.pricing_rule_id = rule.id
        snapshot.base_ppw = rule.base_ppw
        snapshot.redline_ppw = rule.redline_ppw
        if rule.redline_ppw is not None and watts > 0:
            snapshot.agent_cost_basis = quantize_money(rule.redline_ppw * watts)

    def _apply_commission(
        self,
        snapshot: PricingSnapshot,
        rule: CommissionRule,
        contract_value: Decimal,
        net_price: Decimal,
        kw_system: Decimal,
    ) -> None:
        basis = self.payout_calculator.basis_for(rule, contract_value, net_price, kw_system)
        payout = self.payout_calculator.calculate(rule, basis)

        snapshot.commission_rule_id = rule.id
        snapshot.agent_commission_pct = rule.agent_commission_pct
        snapshot.agent_payout_amount = payout.agent_amount
        snapshot.manager_commission_pct = rule.manager_commission_pct
        snapshot.manager_payout_amount = payout.manager_amount
        snapshot.setter_payout_amount = payout.setter_amount

        gross_profit = quantize_money(net_price - payout.total)
        snapshot.gross_profit = gross_profit
        if net_price != 0:
            snapshot.margin_pct = quantize_money(gross_profit / net_price * Decimal("100"))

    @staticmethod
    def _per_watt(amount: Decimal, watts: Decimal) -> Decimal | None:
        if watts <= 0:
            return None
        return (amount / watts).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
