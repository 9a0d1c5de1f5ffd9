"""
Deal Pricer - Main Orchestrator

Coordinates one pricing pass for a deal through discrete, testable steps.
"""

import logging
from typing import Any, Dict

from .calculators import CommissionPayoutCalculator, SnapshotBuilder
from .models import CommissionRule, PricingRequest, PricingResult, PricingRule
from .output import OutputBuilder
from .resolver import RuleResolver, rule_status, suggest_priority_for
from .validators import RuleValidator

logger = logging.getLogger(__name__)


class DealPricer:
    """
    Main orchestrator for deal pricing.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Resolve Pricing Rule
    3. Resolve Commission Rule
    4. Build Snapshot (adders, net price, payouts, margin)
    5. Build Output
    """

    def __init__(self):
        self.validator = RuleValidator()
        self.resolver = RuleResolver()
        self.payout_calculator = CommissionPayoutCalculator()
        self.snapshot_builder = SnapshotBuilder(self.payout_calculator)
        self.output_builder = OutputBuilder()

    def process(self, request: PricingRequest) -> PricingResult:
        """
        Price a deal.

        Args:
            request: Parsed PricingRequest

        Returns:
            PricingResult; a rule is None when nothing matched
        """
        # Step 1: Validate
        self.validator.validate_request(request)

        # Steps 2-3: Resolve rules as of the requested date
        pricing_rule = self.resolver.resolve_pricing_rule(request.pricing_rules, request.deal, request.as_of)
        commission_rule = self.resolver.resolve_commission_rule(request.commission_rules, request.deal, request.as_of)

        if pricing_rule is None:
            logger.info(f"No pricing rule matched deal {request.deal_id}")
        if commission_rule is None:
            logger.info(f"No commission rule matched deal {request.deal_id}")

        # Step 4: Snapshot
        snapshot = self.snapshot_builder.build(
            deal_id=request.deal_id,
            as_of=request.as_of,
            pricing_rule=pricing_rule,
            commission_rule=commission_rule,
            contract_value=request.contract_value,
            kw_system=request.kw_system,
            adders=request.adders,
        )

        return PricingResult(pricing_rule=pricing_rule, commission_rule=commission_rule, snapshot=snapshot)

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Price a deal from raw dictionary input.

        Convenience method for API usage.
        """
        result = self.process(PricingRequest.from_dict(data))
        return {
            "pricing_rule": self.output_builder.rule_summary(result.pricing_rule),
            "commission_rule": self.output_builder.rule_summary(result.commission_rule),
            "snapshot": self.output_builder.snapshot(result.snapshot),
        }

    def resolve_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve both rule kinds for a deal and list every eligible candidate.

        Useful for explaining why a rule won.
        """
        request = PricingRequest.from_dict(data)
        if request.as_of is None:
            raise ValueError("as_of is required")

        output = {}
        for kind, rules in (("pricing", request.pricing_rules), ("commission", request.commission_rules)):
            ranked = self.resolver.eligible_rules(rules, request.deal, request.as_of)
            winner = ranked[0] if ranked else None
            output[f"{kind}_rule"] = self.output_builder.rule_summary(winner)
            output[f"{kind}_candidates"] = [
                self.output_builder.rule_summary(r, rule_status(r, request.as_of)) for r in ranked
            ]
        return output

    def validate_rule_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a rule before it is saved.

        Expects {"kind": "pricing" | "commission", "rule": {...}}. Raises
        ValueError on the first violated constraint.
        """
        kind = data.get("kind", "pricing")
        fields = data["rule"]
        if kind == "pricing":
            rule = PricingRule.from_dict(fields)
            self.validator.validate_pricing_rule(rule)
        elif kind == "commission":
            rule = CommissionRule.from_dict(fields)
            self.validator.validate_commission_rule(rule)
        else:
            raise ValueError(f"Invalid rule kind: {kind}. Must be 'pricing' or 'commission'")

        return {
            "status": "valid",
            "kind": kind,
            "suggested_priority": suggest_priority_for(fields),
        }
