"""
Rule Resolver

Selects the single applicable pricing or commission rule for a deal.
Pure functions over already-loaded rules: no I/O, no clock reads, no mutation.
"""

import logging
from datetime import date
from typing import Iterable, Optional, TypeVar, Union

from .models import CommissionRule, DealAttributes, PricingRule

logger = logging.getLogger(__name__)

Rule = TypeVar("Rule", PricingRule, CommissionRule)


# Suggested priority per filled scope combination: (state, team, installer) -> priority
OVERRIDE_PRIORITY = 100
PRIORITY_TABLE = {
    (True, True, True): 60,
    (True, False, True): 50,
    (True, True, False): 40,
    (False, True, True): 30,
    (False, False, True): 30,
    (False, True, False): 20,
    (True, False, False): 10,
    (False, False, False): 0,
}


class RuleResolver:
    """Resolves the highest-priority eligible rule for a deal.

    Eligibility:
    1. Rule is active
    2. effective_start <= as_of <= effective_end (either end is open when absent)
    3. Every scope field set on the rule equals the deal's value exactly

    Among eligible rules the highest priority wins. Equal priorities go to
    the rule with more scope fields set, then to the lowest rule id, so the
    result never depends on query order.
    """

    def resolve(self, rules: Iterable[Rule], deal: DealAttributes, as_of: date) -> Optional[Rule]:
        """Return the winning rule, or None when no rule is eligible."""
        ranked = self.eligible_rules(rules, deal, as_of)
        if not ranked:
            logger.debug("No eligible rule for deal %s as of %s", deal, as_of)
            return None
        winner = ranked[0]
        logger.debug("Resolved rule %s (priority %s) from %d candidates", winner.id, winner.priority, len(ranked))
        return winner

    def resolve_pricing_rule(
        self, rules: Iterable[PricingRule], deal: DealAttributes, as_of: date
    ) -> Optional[PricingRule]:
        return self.resolve(rules, deal, as_of)

    def resolve_commission_rule(
        self, rules: Iterable[CommissionRule], deal: DealAttributes, as_of: date
    ) -> Optional[CommissionRule]:
        return self.resolve(rules, deal, as_of)

    def eligible_rules(self, rules: Iterable[Rule], deal: DealAttributes, as_of: date) -> list[Rule]:
        """Return all eligible rules, winner first."""
        candidates = [
            (index, rule) for index, rule in enumerate(rules)
            if self.is_eligible(rule, deal, as_of)
        ]
        candidates.sort(key=lambda item: self._rank_key(item[0], item[1]))
        return [rule for _, rule in candidates]

    def is_eligible(self, rule: Union[PricingRule, CommissionRule], deal: DealAttributes, as_of: date) -> bool:
        if not rule.is_active:
            return False
        if not self.is_in_effect(rule, as_of):
            return False
        return self.matches_scope(rule, deal)

    @staticmethod
    def is_in_effect(rule: Union[PricingRule, CommissionRule], as_of: date) -> bool:
        """Both ends of the effective window are inclusive; a missing bound is open."""
        if rule.effective_start is not None and rule.effective_start > as_of:
            return False
        if rule.effective_end is not None and rule.effective_end < as_of:
            return False
        return True

    @staticmethod
    def matches_scope(rule: Union[PricingRule, CommissionRule], deal: DealAttributes) -> bool:
        """An unset scope field matches anything; a set one must match exactly."""
        for field_name in rule.SCOPE_FIELDS:
            expected = getattr(rule, field_name)
            if expected is None:
                continue
            if field_name == "install_partner":
                actual = deal.installer
            else:
                actual = getattr(deal, field_name)
            if expected != actual:
                return False
        return True

    @staticmethod
    def specificity(rule: Union[PricingRule, CommissionRule]) -> int:
        """Number of scope fields the rule sets."""
        return sum(getattr(rule, name) is not None for name in rule.SCOPE_FIELDS)

    @classmethod
    def _rank_key(cls, index: int, rule: Union[PricingRule, CommissionRule]) -> tuple:
        # More specific first, then lowest id; rules without an id sort after identified ones, then by input order
        return (-rule.priority, -cls.specificity(rule), rule.id is None, str(rule.id or ""), index)


def rule_status(rule: Union[PricingRule, CommissionRule], as_of: date) -> str:
    """Classify a rule as 'inactive', 'future', 'expired' or 'current'."""
    if not rule.is_active:
        return "inactive"
    if rule.effective_start is not None and rule.effective_start > as_of:
        return "future"
    if rule.effective_end is not None and rule.effective_end < as_of:
        return "expired"
    return "current"


def suggest_priority(
    state: Optional[str] = None,
    team: Optional[str] = None,
    install_partner: Optional[str] = None,
    rule_type: Optional[str] = None,
) -> int:
    """Suggest a priority so that more specific rules outrank general ones.

    Override rules always suggest 100. Otherwise the suggestion depends only
    on which of state, team and installer are filled in.
    """
    if rule_type == "override":
        return OVERRIDE_PRIORITY
    return PRIORITY_TABLE[(bool(state), bool(team), bool(install_partner))]


def suggest_priority_for(fields: dict) -> int:
    """suggest_priority() over a rule form dict."""
    return suggest_priority(
        state=fields.get("state"),
        team=fields.get("team"),
        install_partner=fields.get("install_partner"),
        rule_type=fields.get("rule_type"),
    )
