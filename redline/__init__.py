"""
REDLINE PRICING & COMMISSION RULE ENGINE
Version 1.0
"""

from .models import CommissionRule, DealAttributes, PricingRequest, PricingRule
from .processor import DealPricer
from .reports import DashboardReporter
from .resolver import RuleResolver, rule_status, suggest_priority

__all__ = [
    'DealPricer',
    'DashboardReporter',
    'RuleResolver',
    'PricingRule',
    'CommissionRule',
    'DealAttributes',
    'PricingRequest',
    'rule_status',
    'suggest_priority',
]
