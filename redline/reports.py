"""
Dashboard Reporter

Runs the dashboard calculators over deals-view rows supplied by the caller
and returns API-ready dictionaries.
"""

from typing import Any, Dict

from .calculators import AdvanceAttributor, AdvanceLedgerCalculator, DealFinancialsCalculator, PipelineAnalyzer
from .models import AdvanceEntry, DealRow, parse_date
from .output import OutputBuilder


class DashboardReporter:
    """Entry point for the derived-field dashboards."""

    def __init__(self):
        self.financials_calculator = DealFinancialsCalculator()
        self.pipeline_analyzer = PipelineAnalyzer()
        self.advance_attributor = AdvanceAttributor()
        self.ledger_calculator = AdvanceLedgerCalculator()
        self.output_builder = OutputBuilder()

    def deal_financials_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Per-deal derived fields, column totals and the status summary."""
        rows = self._rows(data)
        results = self.financials_calculator.calculate_all(rows)
        return {
            "rows": [self.output_builder.financials(r) for r in results],
            "totals": self.output_builder.totals(self.financials_calculator.totals(results)),
            "summary": self.output_builder.status_summary(self.financials_calculator.status_summary(results)),
        }

    def pipeline_stats_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Speed table for one statistic over sale-to-stage or stage-to-stage columns."""
        rows = self._filtered_rows(data)
        kind = data.get("kind", "avg")
        columns = data.get("columns", "sale_to_stage")
        table = self.pipeline_analyzer.stat_table(rows, kind=kind, columns=columns)
        return {"kind": kind, "columns": columns, "rows": self.output_builder.stat_rows(table)}

    def aging_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Aging buckets as of the given date."""
        as_of = parse_date(data.get("as_of"))
        if as_of is None:
            raise ValueError("as_of is required")
        mode = data.get("mode", "receivable")
        table = self.pipeline_analyzer.aging_table(self._filtered_rows(data), as_of, mode=mode)
        return {"as_of": as_of.isoformat(), "mode": mode, "rows": self.output_builder.aging_rows(table)}

    def advances_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Per-person deal attribution and advance ledger, each with a totals row.

        "advances" holds the ledger rows and may be omitted.
        """
        stats = self.advance_attributor.attribute(self._rows(data))
        entries = [AdvanceEntry.from_dict(e) for e in data.get("advances") or []]
        ledgers = self.ledger_calculator.summarize(entries, stats)
        return {
            "agents": {name: self.output_builder.agent_stats(s) for name, s in sorted(stats.items())},
            "totals": self.output_builder.agent_stats(self.advance_attributor.totals(stats)),
            "ledger": {name: self.output_builder.advance_ledger(ledger) for name, ledger in sorted(ledgers.items())},
            "ledger_totals": self.output_builder.advance_ledger(self.ledger_calculator.totals(ledgers)),
        }

    def _rows(self, data: Dict[str, Any]) -> list[DealRow]:
        rows = data.get("deals")
        if rows is None:
            raise ValueError("deals is required")
        return [DealRow.from_dict(r) for r in rows]

    def _filtered_rows(self, data: Dict[str, Any]) -> list[DealRow]:
        return self.pipeline_analyzer.filter_rows(
            self._rows(data),
            mode=data.get("status_mode", "custom"),
            statuses=data.get("statuses"),
        )
