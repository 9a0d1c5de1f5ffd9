"""
Commission Payout Calculator

Turns a resolved commission rule into per-role payout amounts.
All use Decimal for precision with ROUND_HALF_UP rounding.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import CommissionPayout, CommissionRule


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class CommissionPayoutCalculator:
    """Calculates agent, manager and setter payouts for a deal."""

    HUNDRED = Decimal("100")

    def calculate(self, rule: CommissionRule, basis_amount: Decimal) -> CommissionPayout:
        """
        Each role earns (basis × pct / 100) + flat amount.
        A missing percentage or flat amount contributes nothing.
        """
        return CommissionPayout(
            basis_amount=basis_amount,
            agent_amount=self._role_amount(basis_amount, rule.agent_commission_pct, rule.agent_flat_amount),
            manager_amount=self._role_amount(basis_amount, rule.manager_commission_pct, rule.manager_flat_amount),
            setter_amount=self._role_amount(basis_amount, rule.setter_commission_pct, rule.setter_flat_amount),
        )

    def basis_for(
        self,
        rule: CommissionRule,
        contract_value: Decimal,
        net_price: Decimal,
        kw_system: Decimal
    ) -> Decimal:
        """
        Pick the amount the commission percentages apply to.

        - contract_value: the full contract value
        - net_price: contract value after adders
        - per_kw: system size in kW (percentages act as $ per 100 kW)
        """
        if rule.commission_basis == "net_price":
            return net_price
        if rule.commission_basis == "per_kw":
            return kw_system
        return contract_value

    def _role_amount(self, basis: Decimal, pct: Decimal | None, flat: Decimal | None) -> Decimal:
        amount = Decimal("0")
        if pct is not None:
            amount += basis * (pct / self.HUNDRED)
        if flat is not None:
            amount += flat
        return quantize_money(amount)
