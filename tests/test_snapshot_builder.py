"""
Unit Tests for Snapshot Builder

Deal used throughout: $30,000 contract, 8 kW system, $2,000 of adders.
"""

from datetime import date
from decimal import Decimal

import pytest

from redline.calculators.snapshot import SnapshotBuilder
from redline.models import AdderLine, CommissionRule, PricingRule

AS_OF = date(2024, 7, 1)


@pytest.fixture
def builder():
    return SnapshotBuilder()


@pytest.fixture
def adders():
    return [
        AdderLine(name="Roof work", qty=Decimal("1"), unit_price=Decimal("1500")),
        AdderLine(name="Panel upgrade", qty=Decimal("2"), unit_price=Decimal("250")),
    ]


@pytest.fixture
def pricing_rule():
    return PricingRule(
        id="p-tx",
        name="Texas",
        effective_start=date(2024, 1, 1),
        state="TX",
        base_ppw=Decimal("3.10"),
        redline_ppw=Decimal("2.80"),
    )


@pytest.fixture
def commission_rule():
    return CommissionRule(
        id="c-default",
        name="Default",
        effective_start=date(2024, 1, 1),
        agent_commission_pct=Decimal("10"),
        manager_flat_amount=Decimal("500"),
    )


class TestSnapshotTotals:

    def test_adders_and_net_price(self, builder, adders):
        snapshot = builder.build("d1", AS_OF, None, None, Decimal("30000"), Decimal("8"), adders)

        assert snapshot.total_adders == Decimal("2000.00")
        assert snapshot.contract_net_price == Decimal("28000.00")
        # $28,000 / 8,000 W
        assert snapshot.net_ppw == Decimal("3.5000")

    def test_zero_kw_has_no_net_ppw(self, builder):
        snapshot = builder.build("d1", AS_OF, None, None, Decimal("30000"), Decimal("0"), [])
        assert snapshot.net_ppw is None

    def test_adders_are_itemized(self, builder, adders):
        snapshot = builder.build("d1", AS_OF, None, None, Decimal("30000"), Decimal("8"), adders)
        assert [a.name for a in snapshot.adders] == ["Roof work", "Panel upgrade"]
        assert snapshot.adders[1].total == Decimal("500")


class TestSnapshotRules:

    def test_pricing_rule_fields(self, builder, pricing_rule, adders):
        snapshot = builder.build("d1", AS_OF, pricing_rule, None, Decimal("30000"), Decimal("8"), adders)

        assert snapshot.pricing_rule_id == "p-tx"
        assert snapshot.base_ppw == Decimal("3.10")
        assert snapshot.redline_ppw == Decimal("2.80")
        # $2.80 × 8,000 W
        assert snapshot.agent_cost_basis == Decimal("22400.00")

    def test_commission_payouts_and_margin(self, builder, commission_rule, adders):
        snapshot = builder.build("d1", AS_OF, None, commission_rule, Decimal("30000"), Decimal("8"), adders)

        assert snapshot.commission_rule_id == "c-default"
        assert snapshot.agent_payout_amount == Decimal("3000.00")
        assert snapshot.manager_payout_amount == Decimal("500.00")
        # $28,000 - $3,500
        assert snapshot.gross_profit == Decimal("24500.00")
        assert snapshot.margin_pct == Decimal("87.50")

    def test_missing_rules_leave_fields_empty(self, builder):
        snapshot = builder.build("d1", AS_OF, None, None, Decimal("30000"), Decimal("8"), [])

        assert snapshot.pricing_rule_id is None
        assert snapshot.commission_rule_id is None
        assert snapshot.agent_payout_amount is None
        assert snapshot.gross_profit is None
        assert snapshot.margin_pct is None

    def test_net_price_basis_uses_price_after_adders(self, builder, adders):
        rule = CommissionRule(
            id="c-net",
            name="Net",
            effective_start=date(2024, 1, 1),
            agent_commission_pct=Decimal("10"),
            commission_basis="net_price",
        )
        snapshot = builder.build("d1", AS_OF, None, rule, Decimal("30000"), Decimal("8"), adders)
        assert snapshot.agent_payout_amount == Decimal("2800.00")
