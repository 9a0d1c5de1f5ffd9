"""
Calculators Package

Provides all calculation components for deal pricing and dashboards.
"""

from .advances import AdvanceAttributor, AdvanceLedgerCalculator
from .financials import DealFinancialsCalculator
from .payout import CommissionPayoutCalculator
from .pipeline import PipelineAnalyzer
from .snapshot import SnapshotBuilder

__all__ = [
    "CommissionPayoutCalculator",
    "SnapshotBuilder",
    "DealFinancialsCalculator",
    "PipelineAnalyzer",
    "AdvanceAttributor",
    "AdvanceLedgerCalculator",
]
