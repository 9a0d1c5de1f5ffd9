"""
Rule Validation for the Redline Rule Engine

Validates rules when they are authored, before they are stored.
The resolver itself trusts its input; nonsensical rules are rejected here.
Raises ValueError with clear messages for any constraint violations.
"""

from decimal import Decimal

from .models import CommissionRule, PricingRequest, PricingRule

RULE_TYPES = ("base", "state", "installer", "team", "override")
COMMISSION_BASIS_OPTIONS = ("contract_value", "net_price", "per_kw")


class RuleValidator:
    """Validates pricing and commission rules according to business rules."""

    def validate_pricing_rule(self, rule: PricingRule) -> None:
        """
        Run all pricing rule validations. Raises ValueError if any check fails.
        """
        self._validate_common(rule)

        if rule.rule_type not in RULE_TYPES:
            raise ValueError(f"Invalid rule_type: {rule.rule_type}. Must be one of {', '.join(RULE_TYPES)}")

        for name in ("base_ppw", "redline_ppw", "max_agent_cost_basis"):
            value = getattr(rule, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative, got: {value}")

        if rule.redline_ppw is not None and rule.base_ppw is not None and rule.redline_ppw > rule.base_ppw:
            raise ValueError(
                f"redline_ppw cannot exceed base_ppw, got redline {rule.redline_ppw} > base {rule.base_ppw}"
            )

        self._validate_pct("target_margin_pct", rule.target_margin_pct)

    def validate_commission_rule(self, rule: CommissionRule) -> None:
        """
        Run all commission rule validations. Raises ValueError if any check fails.
        """
        self._validate_common(rule)

        if rule.commission_basis not in COMMISSION_BASIS_OPTIONS:
            raise ValueError(
                f"Invalid commission_basis: {rule.commission_basis}. "
                f"Must be one of {', '.join(COMMISSION_BASIS_OPTIONS)}"
            )

        for name in ("agent_commission_pct", "manager_commission_pct", "setter_commission_pct", "company_margin_pct"):
            self._validate_pct(name, getattr(rule, name))

        for name in ("agent_flat_amount", "manager_flat_amount", "setter_flat_amount"):
            value = getattr(rule, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative, got: {value}")

    def validate_request(self, request: PricingRequest) -> None:
        """Validate the deal-level numbers of a pricing request."""
        if request.as_of is None:
            raise ValueError("as_of is required")
        if request.contract_value < 0:
            raise ValueError(f"contract_value cannot be negative, got: {request.contract_value}")
        if request.kw_system < 0:
            raise ValueError(f"kw_system cannot be negative, got: {request.kw_system}")
        for adder in request.adders:
            if adder.qty < 0 or adder.unit_price < 0:
                raise ValueError(f"adder quantities and prices cannot be negative: {adder}")

    def _validate_common(self, rule) -> None:
        if not rule.name:
            raise ValueError("Rule name is required")

        if rule.effective_start is None:
            raise ValueError(f"effective_start is required for rule '{rule.name}'")

        if rule.effective_end is not None and rule.effective_end < rule.effective_start:
            raise ValueError(
                f"effective_end ({rule.effective_end}) cannot be before effective_start ({rule.effective_start})"
            )

        if rule.priority < 0:
            raise ValueError(f"priority cannot be negative, got: {rule.priority}")

    def _validate_pct(self, name: str, value: Decimal | None) -> None:
        if value is not None and not (0 <= value <= 100):
            raise ValueError(f"{name} must be between 0 and 100, got: {value}")
