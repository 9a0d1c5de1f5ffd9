"""
Pipeline Speed Analyzer

Day counts between installation milestones, summary statistics over those
durations, and aging buckets for receivables.
"""

import statistics
from datetime import date
from typing import Iterable, Optional

from ..models import AgingRow, DealRow, Durations, StatRow

ACTIVE_STATUSES = ("Pending", "P2 Ready", "Partial P2 Paid", "P2 Paid")
LIVE_STATUSES = ("Pending", "P2 Ready", "Partial P2 Paid")

# (key, min days, max days), both bounds inclusive
AGING_BUCKETS = (
    ("<30", 0, 30),
    ("31-60", 31, 60),
    ("61-90", 61, 90),
    ("91-120", 91, 120),
    ("121-150", 121, 150),
    ("151-180", 151, 180),
    (">180", 181, None),
)

SALE_TO_STAGE_COLUMNS = (
    "sale_to_ss",
    "sale_to_design_submitted",
    "sale_to_design_ready",
    "sale_to_permit_submitted",
    "sale_to_permit_approved",
    "sale_to_install1",
    "sale_to_install2",
    "sale_to_paid",
    "sale_to_pto",
)

STAGE_TO_STAGE_COLUMNS = (
    "sale_to_ss",
    "ss_to_design_submitted",
    "design_submitted_to_design_ready",
    "design_ready_to_permit_submitted",
    "permit_submitted_to_permit_approved",
    "permit_approved_to_install1",
    "install1_to_install2",
    "install2_to_paid",
    "install2_to_pto",
)

STAT_KINDS = ("avg", "median", "stddev")


def days_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Signed whole days from start to end, or None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).days


def _non_neg(days: Optional[int]) -> Optional[int]:
    if days is None:
        return None
    return max(0, days)


def average(values: list) -> Optional[float]:
    if not values:
        return None
    return statistics.fmean(values)


def median(values: list) -> Optional[float]:
    if not values:
        return None
    return float(statistics.median(values))


def sample_stddev(values: list) -> Optional[float]:
    """Sample standard deviation (n - 1); needs at least two values."""
    if len(values) < 2:
        return None
    return statistics.stdev(values)


def bucket_for_days(days: int) -> str:
    for key, low, high in AGING_BUCKETS:
        if days >= low and (high is None or days <= high):
            return key
    return ">180"


def is_activated(row: DealRow) -> bool:
    return (row.activated or "").strip().lower() == "yes"


def is_active_status(row: DealRow) -> bool:
    return (row.status or "").strip() in ACTIVE_STATUSES


def is_live(row: DealRow) -> bool:
    """Live deals are in a pre-paid status and not yet activated."""
    return (row.status or "").strip() in LIVE_STATUSES and not is_activated(row)


class PipelineAnalyzer:
    """Computes pipeline durations, speed statistics and aging tables."""

    STAT_FUNCTIONS = {
        "avg": average,
        "median": median,
        "stddev": sample_stddev,
    }

    def durations(self, row: DealRow) -> Durations:
        """
        Calculate milestone durations for one deal.

        Negative spans (dates entered out of order) clamp to 0, except
        Install 2 to PTO which is reported as an absolute value.
        """
        sale = row.sale_date
        return Durations(
            sale_to_ss=_non_neg(days_between(sale, row.site_survey)),
            sale_to_design_submitted=_non_neg(days_between(sale, row.design_submitted)),
            sale_to_design_ready=_non_neg(days_between(sale, row.design_ready)),
            sale_to_permit_submitted=_non_neg(days_between(sale, row.permit_submitted)),
            sale_to_permit_approved=_non_neg(days_between(sale, row.permit_approved)),
            sale_to_install1=_non_neg(days_between(sale, row.install1)),
            sale_to_install2=_non_neg(days_between(sale, row.install2)),
            sale_to_paid=_non_neg(days_between(sale, row.paid)),
            sale_to_pto=_non_neg(days_between(sale, row.pto)),
            ss_to_design_submitted=_non_neg(days_between(row.site_survey, row.design_submitted)),
            design_submitted_to_design_ready=_non_neg(days_between(row.design_submitted, row.design_ready)),
            design_ready_to_permit_submitted=_non_neg(days_between(row.design_ready, row.permit_submitted)),
            permit_submitted_to_permit_approved=_non_neg(days_between(row.permit_submitted, row.permit_approved)),
            permit_approved_to_install1=_non_neg(days_between(row.permit_approved, row.install1)),
            install1_to_install2=_non_neg(days_between(row.install1, row.install2)),
            install2_to_paid=_non_neg(days_between(row.install2, row.paid)),
            install2_to_pto=self._abs(days_between(row.install2, row.pto)),
        )

    def filter_rows(self, rows: Iterable[DealRow], mode: str = "custom", statuses: Optional[list] = None) -> list[DealRow]:
        """
        Apply the status filter.

        - active_only: any active status
        - live_only: pre-paid status and not activated
        - custom: the given statuses, or everything when none are given
        """
        if mode == "active_only":
            return [r for r in rows if is_active_status(r)]
        if mode == "live_only":
            return [r for r in rows if is_live(r)]
        if mode != "custom":
            raise ValueError(f"Invalid status filter mode: {mode}")
        if not statuses:
            return list(rows)
        return [r for r in rows if (r.status or "").strip() in statuses]

    def stat_table(self, rows: list[DealRow], kind: str = "avg", columns: str = "sale_to_stage") -> list[StatRow]:
        """Build the speed table: OVERALL, ACTIVE ONLY, LIVE ONLY, then one row per company."""
        if kind not in self.STAT_FUNCTIONS:
            raise ValueError(f"Invalid stat kind: {kind}. Must be one of {', '.join(STAT_KINDS)}")
        if columns == "sale_to_stage":
            keys = SALE_TO_STAGE_COLUMNS
        elif columns == "stage_to_stage":
            keys = STAGE_TO_STAGE_COLUMNS
        else:
            raise ValueError(f"Invalid columns: {columns}. Must be 'sale_to_stage' or 'stage_to_stage'")

        stat = self.STAT_FUNCTIONS[kind]
        with_durations = [(r, self.durations(r)) for r in rows]

        def build_row(label: str, subset: list) -> StatRow:
            values = {}
            for key in keys:
                nums = [getattr(d, key) for _, d in subset if getattr(d, key) is not None]
                values[key] = stat(nums)
            return StatRow(label=label, count=len(subset), values=values)

        return [
            build_row(label, [(r, d) for r, d in with_durations if predicate(r)])
            for label, predicate in self._groups(rows)
        ]

    def aging_table(self, rows: list[DealRow], as_of: date, mode: str = "receivable") -> list[AgingRow]:
        """
        Count deals per aging bucket.

        - receivable: unpaid deals, days from sale to as_of
        - paid: paid deals, days from sale to paid date
        Deals without a sale date are skipped.
        """
        if mode not in ("receivable", "paid"):
            raise ValueError(f"Invalid aging mode: {mode}. Must be 'receivable' or 'paid'")

        def build_row(label: str, subset: list[DealRow]) -> AgingRow:
            aging = AgingRow(label=label, buckets={key: 0 for key, _, _ in AGING_BUCKETS})
            for r in subset:
                if r.sale_date is None:
                    continue
                if mode == "receivable":
                    if r.paid is not None:
                        continue
                    days = days_between(r.sale_date, as_of)
                else:
                    if r.paid is None:
                        continue
                    days = days_between(r.sale_date, r.paid)
                aging.buckets[bucket_for_days(max(0, days))] += 1
                aging.total += 1
            return aging

        return [build_row(label, [r for r in rows if predicate(r)]) for label, predicate in self._groups(rows)]

    @staticmethod
    def _groups(rows: list[DealRow]) -> list:
        companies = sorted({(r.company or "").strip() for r in rows} - {""})
        groups = [
            ("OVERALL", lambda r: True),
            ("ACTIVE ONLY", is_active_status),
            ("LIVE ONLY", is_live),
        ]
        for company in companies:
            groups.append((company, lambda r, c=company: (r.company or "").strip() == c))
        return groups

    @staticmethod
    def _abs(days: Optional[int]) -> Optional[int]:
        if days is None:
            return None
        return abs(days)
