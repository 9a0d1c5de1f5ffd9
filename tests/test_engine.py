"""
Tests for Redline Rule Engine

Run with: python -m pytest tests/ -v
"""

import pytest

from redline import DashboardReporter, DealPricer


@pytest.fixture
def pricing_rules():
    return [
        {
            "id": "p-base", "name": "Base", "rule_type": "base",
            "base_ppw": 3.20, "redline_ppw": 2.90,
            "effective_start": "2024-01-01", "is_active": True, "priority": 0,
        },
        {
            "id": "p-tx", "name": "Texas", "rule_type": "state", "state": "TX",
            "base_ppw": 3.10, "redline_ppw": 2.80,
            "effective_start": "2024-01-01", "effective_end": None, "is_active": True, "priority": 10,
        },
        {
            "id": "p-acme", "name": "Acme (expired)", "rule_type": "installer", "install_partner": "Acme",
            "base_ppw": 3.00, "redline_ppw": 2.50,
            "effective_start": "2024-01-01", "effective_end": "2024-06-30", "is_active": True, "priority": 30,
        },
    ]


@pytest.fixture
def commission_rules():
    return [
        {
            "id": "c-default", "name": "Default", "agent_commission_pct": 10,
            "manager_flat_amount": 500, "commission_basis": "contract_value",
            "effective_start": "2024-01-01", "priority": 0,
        },
        {
            "id": "c-jordan", "name": "Jordan", "sales_rep": "Jordan", "agent_commission_pct": 12,
            "effective_start": "2024-01-01", "priority": 50, "is_active": False,
        },
    ]


@pytest.fixture
def sample_input(pricing_rules, commission_rules):
    return {
        "deal": {
            "id": "deal-1", "state": "TX", "install_partner": None, "company": "Acme",
            "teams": "East", "sales_rep": "Jordan",
        },
        "pricing_rules": pricing_rules,
        "commission_rules": commission_rules,
        "as_of": "2024-07-15",
        "contract_value": 30000,
        "kw_system": 8,
        "adders": [{"name": "Roof work", "qty": 1, "unit_price": 1500}, {"name": "Panel upgrade", "qty": 2, "unit_price": 250}],
    }


class TestDealPricer:
    """Test the main pricing orchestrator."""

    @pytest.fixture
    def pricer(self):
        return DealPricer()

    def test_basic_processing(self, pricer, sample_input):
        result = pricer.process_from_dict(sample_input)

        assert "pricing_rule" in result
        assert "commission_rule" in result
        assert "snapshot" in result

    def test_expired_installer_rule_skipped(self, pricer, sample_input):
        """Acme rule has the highest priority but ended before as_of."""
        result = pricer.process_from_dict(sample_input)
        assert result["pricing_rule"]["id"] == "p-tx"

    def test_installer_rule_wins_while_in_effect(self, pricer, sample_input):
        sample_input["as_of"] = "2024-06-30"
        result = pricer.process_from_dict(sample_input)
        assert result["pricing_rule"]["id"] == "p-acme"

    def test_inactive_commission_rule_skipped(self, pricer, sample_input):
        result = pricer.process_from_dict(sample_input)
        assert result["commission_rule"]["id"] == "c-default"

    def test_snapshot_values(self, pricer, sample_input):
        snapshot = pricer.process_from_dict(sample_input)["snapshot"]

        assert snapshot["deal_id"] == "deal-1"
        assert snapshot["pricing_rule_id"] == "p-tx"
        assert snapshot["commission_rule_id"] == "c-default"
        assert snapshot["total_adders"] == 2000.0
        assert snapshot["contract_net_price"] == 28000.0
        assert snapshot["net_ppw"] == 3.5
        assert snapshot["agent_cost_basis"] == 22400.0
        assert snapshot["agent_payout_amount"] == 3000.0
        assert snapshot["manager_payout_amount"] == 500.0
        assert snapshot["gross_profit"] == 24500.0
        assert snapshot["margin_pct"] == 87.5
        assert len(snapshot["adders_snapshot"]) == 2

    def test_no_matching_rules_is_not_an_error(self, pricer, sample_input):
        sample_input["pricing_rules"] = []
        sample_input["commission_rules"] = []
        result = pricer.process_from_dict(sample_input)

        assert result["pricing_rule"] is None
        assert result["commission_rule"] is None
        assert result["snapshot"]["agent_payout_amount"] is None

    def test_rule_without_start_date_does_not_abort_pricing(self, pricer, sample_input):
        sample_input["pricing_rules"].append({"id": "p-undated", "name": "Undated", "priority": 5})
        result = pricer.process_from_dict(sample_input)

        assert result["pricing_rule"]["id"] == "p-tx"

    def test_missing_as_of_raises(self, pricer, sample_input):
        del sample_input["as_of"]
        with pytest.raises(KeyError):
            pricer.process_from_dict(sample_input)

    def test_resolve_lists_candidates(self, pricer, sample_input):
        result = pricer.resolve_from_dict(sample_input)

        assert result["pricing_rule"]["id"] == "p-tx"
        assert [c["id"] for c in result["pricing_candidates"]] == ["p-tx", "p-base"]
        assert all(c["status"] == "current" for c in result["pricing_candidates"])

    def test_validate_rule_suggests_priority(self, pricer):
        result = pricer.validate_rule_from_dict({
            "kind": "pricing",
            "rule": {"name": "TX Acme", "state": "TX", "install_partner": "Acme", "effective_start": "2024-01-01"},
        })

        assert result["status"] == "valid"
        assert result["suggested_priority"] == 50

    def test_validate_rule_rejects_redline_above_base(self, pricer):
        with pytest.raises(ValueError, match="redline_ppw cannot exceed base_ppw"):
            pricer.validate_rule_from_dict({
                "kind": "pricing",
                "rule": {"name": "Bad", "base_ppw": 2.5, "redline_ppw": 3.0, "effective_start": "2024-01-01"},
            })


class TestDashboardReporter:
    """Test the dashboard entry points end to end."""

    @pytest.fixture
    def reporter(self):
        return DashboardReporter()

    @pytest.fixture
    def deals(self):
        return [
            {
                "id": "1", "company": "Acme", "sales_rep": "Jordan", "appointment_setter": "Casey",
                "status": "Pending", "rev": 10000, "nova_nrg_rev_after_fee_amount": 4000,
                "gross_profit": 6000, "agent_pay": 3000, "agent_rev_after_fee_amount": 1000,
                "date_closed": "2024-01-01", "site_survey": "2024-01-06",
            },
            {
                "id": "2", "company": "Bolt", "sales_rep": "Sam", "appointment_setter": None,
                "status": "P2 Paid", "rev": 20000, "nova_nrg_rev_after_fee_amount": 20000,
                "gross_profit": 9000, "agent_pay": 4000, "agent_rev_after_fee_amount": 4000,
                "date_closed": "2024-01-01", "paid_nova_nrg_p2_rev_date": "2024-03-01",
                "site_survey": "2024-01-16", "paid": "2024-03-01",
            },
        ]

    def test_deal_financials(self, reporter, deals):
        result = reporter.deal_financials_from_dict({"deals": deals})

        assert result["rows"][0]["has_split"] is True
        assert result["rows"][0]["split_revenue"] == 5000.0
        assert result["rows"][1]["payment_timeline"] == 60
        assert result["totals"]["total_revenue"] == 30000.0
        assert result["totals"]["total_deals"] == 2
        assert result["summary"]["active_total"] == 2

    def test_pipeline_stats(self, reporter, deals):
        result = reporter.pipeline_stats_from_dict({"deals": deals, "kind": "avg"})
        overall = result["rows"][0]

        assert overall["label"] == "OVERALL"
        assert overall["values"]["sale_to_ss"] == 10.0

    def test_aging(self, reporter, deals):
        result = reporter.aging_from_dict({"deals": deals, "as_of": "2024-03-15", "mode": "receivable"})
        overall = result["rows"][0]

        # Deal 1 is unpaid at 74 days
        assert overall["buckets"]["61-90"] == 1
        assert overall["total"] == 1

    def test_aging_requires_as_of(self, reporter, deals):
        with pytest.raises(ValueError, match="as_of is required"):
            reporter.aging_from_dict({"deals": deals})

    def test_advances(self, reporter, deals):
        result = reporter.advances_from_dict({"deals": deals})

        assert set(result["agents"]) == {"Jordan", "Casey"}
        assert result["agents"]["Jordan"]["total_future_revenues"] == 5000.0
        assert result["totals"]["total_future_revenues"] == 10000.0
        assert result["ledger"] == {}

    def test_advance_ledger_leverage(self, reporter, deals):
        advances = [
            {"agent_name": "Jordan", "date": "2024-01-10", "amount_paid_to_agent": 2000},
            {"agent_name": "Jordan", "date": "2024-02-10", "amount_received_from_agent": 1500},
        ]
        result = reporter.advances_from_dict({"deals": deals, "advances": advances})
        jordan = result["ledger"]["Jordan"]

        # Jordan's half of the unpaid payout is (3000 - 1000) / 2
        assert jordan["difference"] == -500.0
        assert jordan["leverage"] == -0.5
        assert jordan["leverage_band"] == "medium"
        assert jordan["previous_balance"] == 2000.0
        assert result["ledger_totals"]["repayment_rate"] == 0.75

    def test_deals_required(self, reporter):
        with pytest.raises(ValueError, match="deals is required"):
            reporter.advances_from_dict({})
