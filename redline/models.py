"""
Domain Models for the Redline Rule Engine

These dataclasses provide type-safe representations of all business entities.
All monetary, percentage and price-per-watt values use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


def to_decimal(value) -> Decimal | None:
    """Convert a raw numeric value to Decimal, keeping None as None."""
    if value is None or value == "":
        return None
    return Decimal(str(value))


def parse_date(value) -> date | None:
    """Parse an ISO date (or the date part of an ISO timestamp)."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _text(value) -> str | None:
    # Empty strings from form posts mean "not set"
    if value is None:
        return None
    value = str(value)
    return value if value != "" else None


TRUE_STRINGS = ("true", "t", "yes", "y", "1", "on")
FALSE_STRINGS = ("false", "f", "no", "n", "0", "off")


def _flag(value, default: bool) -> bool:
    """Parse a boolean that may arrive as a form-posted string."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        raise ValueError(f"Invalid boolean value: {value!r}")
    return bool(value)


def _zero(value: Decimal | None) -> Decimal:
    return value if value is not None else Decimal("0")


# =============================================================================
# RULE MODELS
# =============================================================================


@dataclass
class PricingRule:
    """A scoped, date-bounded pricing rule (base and redline price per watt)."""

    id: str | None
    name: str
    effective_start: date | None
    rule_type: str = "base"
    state: str | None = None
    install_partner: str | None = None
    team: str | None = None
    base_ppw: Decimal | None = None
    redline_ppw: Decimal | None = None
    target_margin_pct: Decimal | None = None
    max_agent_cost_basis: Decimal | None = None
    effective_end: date | None = None
    is_active: bool = True
    priority: int = 0
    notes: str | None = None

    # Scope fields compared against the deal, in check order
    SCOPE_FIELDS = ("state", "install_partner", "team")

    @classmethod
    def from_dict(cls, data: dict) -> "PricingRule":
        return cls(
            id=_text(data.get("id")),
            name=data.get("name") or "",
            rule_type=data.get("rule_type") or "base",
            state=_text(data.get("state")),
            install_partner=_text(data.get("install_partner")),
            team=_text(data.get("team")),
            base_ppw=to_decimal(data.get("base_ppw")),
            redline_ppw=to_decimal(data.get("redline_ppw")),
            target_margin_pct=to_decimal(data.get("target_margin_pct")),
            max_agent_cost_basis=to_decimal(data.get("max_agent_cost_basis")),
            effective_start=parse_date(data.get("effective_start")),
            effective_end=parse_date(data.get("effective_end")),
            is_active=_flag(data.get("is_active"), default=True),
            priority=int(data.get("priority") or 0),
            notes=data.get("notes"),
        )


@dataclass
class CommissionRule:
    """A scoped, date-bounded commission rule (percentages and flat amounts per role)."""

    id: str | None
    name: str
    effective_start: date | None
    sales_rep: str | None = None
    team: str | None = None
    install_partner: str | None = None
    state: str | None = None
    agent_commission_pct: Decimal | None = None
    agent_flat_amount: Decimal | None = None
    manager_commission_pct: Decimal | None = None
    manager_flat_amount: Decimal | None = None
    setter_commission_pct: Decimal | None = None
    setter_flat_amount: Decimal | None = None
    company_margin_pct: Decimal | None = None
    commission_basis: str = "contract_value"
    effective_end: date | None = None
    is_active: bool = True
    priority: int = 0
    notes: str | None = None

    SCOPE_FIELDS = ("state", "install_partner", "team", "sales_rep")

    @classmethod
    def from_dict(cls, data: dict) -> "CommissionRule":
        return cls(
            id=_text(data.get("id")),
            name=data.get("name") or "",
            sales_rep=_text(data.get("sales_rep")),
            team=_text(data.get("team")),
            install_partner=_text(data.get("install_partner")),
            state=_text(data.get("state")),
            agent_commission_pct=to_decimal(data.get("agent_commission_pct")),
            agent_flat_amount=to_decimal(data.get("agent_flat_amount")),
            manager_commission_pct=to_decimal(data.get("manager_commission_pct")),
            manager_flat_amount=to_decimal(data.get("manager_flat_amount")),
            setter_commission_pct=to_decimal(data.get("setter_commission_pct")),
            setter_flat_amount=to_decimal(data.get("setter_flat_amount")),
            company_margin_pct=to_decimal(data.get("company_margin_pct")),
            commission_basis=data.get("commission_basis") or "contract_value",
            effective_start=parse_date(data.get("effective_start")),
            effective_end=parse_date(data.get("effective_end")),
            is_active=_flag(data.get("is_active"), default=True),
            priority=int(data.get("priority") or 0),
            notes=data.get("notes"),
        )


# =============================================================================
# DEAL MODELS
# =============================================================================


@dataclass
class DealAttributes:
    """Read-only projection of a deal used for rule resolution."""

    state: str | None = None
    install_partner: str | None = None
    company: str | None = None
    team: str | None = None
    sales_rep: str | None = None

    @property
    def installer(self) -> str | None:
        """Install partner, falling back to the installing company."""
        if self.install_partner is not None:
            return self.install_partner
        return self.company

    @classmethod
    def from_dict(cls, data: dict) -> "DealAttributes":
        return cls(
            state=data.get("state"),
            install_partner=data.get("install_partner"),
            company=data.get("company"),
            # deals_view exposes the team column as "teams"
            team=data.get("team", data.get("teams")),
            sales_rep=data.get("sales_rep"),
        )


@dataclass
class DealRow:
    """A deals-view row used by the dashboard calculators."""

    id: str | None = None
    company: str | None = None
    customer_name: str | None = None
    sales_rep: str | None = None
    appointment_setter: str | None = None
    status: str | None = None
    activated: str | None = None
    rev: Decimal | None = None
    nova_nrg_rev_after_fee_amount: Decimal | None = None
    gross_profit: Decimal | None = None
    visionary_revenue: Decimal | None = None
    visionary_rev_after_fee_amount: Decimal | None = None
    agent_pay: Decimal | None = None
    agent_rev_after_fee_amount: Decimal | None = None
    date_closed: date | None = None
    paid_date: date | None = None
    # Pipeline milestones
    site_survey: date | None = None
    design_submitted: date | None = None
    design_ready: date | None = None
    permit_submitted: date | None = None
    permit_approved: date | None = None
    install1: date | None = None
    install2: date | None = None
    paid: date | None = None
    pto: date | None = None

    @property
    def sale_date(self) -> date | None:
        return self.date_closed

    @classmethod
    def from_dict(cls, data: dict) -> "DealRow":
        return cls(
            id=_text(data.get("id")),
            company=data.get("company"),
            customer_name=data.get("customer_name"),
            sales_rep=data.get("sales_rep"),
            appointment_setter=data.get("appointment_setter"),
            status=data.get("status"),
            activated=data.get("activated"),
            rev=to_decimal(data.get("rev")),
            nova_nrg_rev_after_fee_amount=to_decimal(data.get("nova_nrg_rev_after_fee_amount")),
            gross_profit=to_decimal(data.get("gross_profit")),
            visionary_revenue=to_decimal(data.get("visionary_revenue")),
            visionary_rev_after_fee_amount=to_decimal(data.get("visionary_rev_after_fee_amount")),
            agent_pay=to_decimal(data.get("agent_pay")),
            agent_rev_after_fee_amount=to_decimal(data.get("agent_rev_after_fee_amount")),
            date_closed=parse_date(data.get("date_closed")),
            paid_date=parse_date(data.get("paid_date", data.get("paid_nova_nrg_p2_rev_date"))),
            site_survey=parse_date(data.get("site_survey")),
            design_submitted=parse_date(data.get("design_submitted")),
            design_ready=parse_date(data.get("design_ready")),
            permit_submitted=parse_date(data.get("permit_submitted")),
            permit_approved=parse_date(data.get("permit_approved")),
            install1=parse_date(data.get("install1")),
            install2=parse_date(data.get("install2")),
            paid=parse_date(data.get("paid")),
            pto=parse_date(data.get("pto")),
        )


@dataclass
class AdderLine:
    """A single itemized adder on a deal (equipment, structural, ...)."""

    name: str
    qty: Decimal
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.qty * self.unit_price

    @classmethod
    def from_dict(cls, data: dict) -> "AdderLine":
        return cls(
            name=data.get("name", ""),
            qty=Decimal(str(data.get("qty", 1))),
            unit_price=Decimal(str(data["unit_price"])),
        )


@dataclass
class PricingRequest:
    """Complete input for pricing a single deal."""

    deal_id: str | None
    deal: DealAttributes
    pricing_rules: list[PricingRule]
    commission_rules: list[CommissionRule]
    as_of: date
    contract_value: Decimal = Decimal("0")
    kw_system: Decimal = Decimal("0")
    adders: list[AdderLine] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PricingRequest":
        deal = data["deal"]
        return cls(
            deal_id=_text(deal.get("id")),
            deal=DealAttributes.from_dict(deal),
            pricing_rules=[PricingRule.from_dict(r) for r in data.get("pricing_rules", [])],
            commission_rules=[CommissionRule.from_dict(r) for r in data.get("commission_rules", [])],
            as_of=parse_date(data["as_of"]),
            contract_value=_zero(to_decimal(data.get("contract_value"))),
            kw_system=_zero(to_decimal(data.get("kw_system"))),
            adders=[AdderLine.from_dict(a) for a in data.get("adders", [])],
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class CommissionPayout:
    """Per-role payout amounts computed from a commission rule."""

    basis_amount: Decimal = Decimal("0")
    agent_amount: Decimal = Decimal("0")
    manager_amount: Decimal = Decimal("0")
    setter_amount: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.agent_amount + self.manager_amount + self.setter_amount


@dataclass
class PricingSnapshot:
    """Point-in-time record of the rules applied to a deal and their effect."""

    deal_id: str | None
    as_of: date
    pricing_rule_id: str | None = None
    commission_rule_id: str | None = None
    base_ppw: Decimal | None = None
    redline_ppw: Decimal | None = None
    net_ppw: Decimal | None = None
    agent_cost_basis: Decimal | None = None
    contract_value: Decimal = Decimal("0")
    total_adders: Decimal = Decimal("0")
    contract_net_price: Decimal = Decimal("0")
    agent_commission_pct: Decimal | None = None
    agent_payout_amount: Decimal | None = None
    manager_commission_pct: Decimal | None = None
    manager_payout_amount: Decimal | None = None
    setter_payout_amount: Decimal | None = None
    margin_pct: Decimal | None = None
    gross_profit: Decimal | None = None
    adders: list[AdderLine] = field(default_factory=list)


@dataclass
class DealFinancials:
    """Derived revenue, gross-profit, payout and 50/50 split fields for one deal."""

    row: DealRow
    payment_timeline: int | None = None
    total_revenue: Decimal = Decimal("0")
    revenue_paid: Decimal = Decimal("0")
    percent_paid: Decimal | None = None
    revenue_unpaid: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    gp_paid: Decimal = Decimal("0")
    gp_unpaid: Decimal = Decimal("0")
    visionary_total: Decimal = Decimal("0")
    visionary_paid_out: Decimal = Decimal("0")
    visionary_pending: Decimal = Decimal("0")
    agent_total: Decimal = Decimal("0")
    agent_paid_out: Decimal = Decimal("0")
    agent_pending: Decimal = Decimal("0")
    has_split: bool = False
    split_revenue: Decimal = Decimal("0")
    split_revenue_paid: Decimal = Decimal("0")
    split_revenue_unpaid: Decimal = Decimal("0")
    split_gp: Decimal = Decimal("0")
    split_gp_paid: Decimal = Decimal("0")
    split_gp_unpaid: Decimal = Decimal("0")
    split_pay_total: Decimal = Decimal("0")
    split_paid_out: Decimal = Decimal("0")
    split_pending: Decimal = Decimal("0")
    bucket: str = "Other"


# Fields summed by FinancialTotals
SUMMED_FINANCIAL_FIELDS = (
    "total_revenue", "revenue_paid", "revenue_unpaid",
    "gross_profit", "gp_paid", "gp_unpaid",
    "visionary_total", "visionary_paid_out", "visionary_pending",
    "agent_total", "agent_paid_out", "agent_pending",
    "split_revenue", "split_revenue_paid", "split_revenue_unpaid",
    "split_gp", "split_gp_paid", "split_gp_unpaid",
    "split_pay_total", "split_paid_out", "split_pending",
)


@dataclass
class FinancialTotals:
    """Column totals over a set of DealFinancials."""

    total_deals: int = 0
    percent_paid: Decimal = Decimal("0")
    sums: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class Durations:
    """Day counts between pipeline milestones for one deal (None = missing date)."""

    sale_to_ss: int | None = None
    sale_to_design_submitted: int | None = None
    sale_to_design_ready: int | None = None
    sale_to_permit_submitted: int | None = None
    sale_to_permit_approved: int | None = None
    sale_to_install1: int | None = None
    sale_to_install2: int | None = None
    sale_to_paid: int | None = None
    sale_to_pto: int | None = None
    ss_to_design_submitted: int | None = None
    design_submitted_to_design_ready: int | None = None
    design_ready_to_permit_submitted: int | None = None
    permit_submitted_to_permit_approved: int | None = None
    permit_approved_to_install1: int | None = None
    install1_to_install2: int | None = None
    install2_to_paid: int | None = None
    install2_to_pto: int | None = None


@dataclass
class StatRow:
    """One row of the pipeline speed table (a statistic per duration column)."""

    label: str
    count: int
    values: dict[str, float | None] = field(default_factory=dict)


@dataclass
class AgingRow:
    """One row of the aging table: deal counts per day bucket."""

    label: str
    buckets: dict[str, int] = field(default_factory=dict)
    total: int = 0


@dataclass
class AgentStats:
    """Per-person attribution of pipeline deals for the advances summary."""

    total_future_revenues: Decimal = Decimal("0")
    revenues_paid: Decimal = Decimal("0")
    revenues_unpaid: Decimal = Decimal("0")
    total_future_gross_profit: Decimal = Decimal("0")
    gross_profit_paid: Decimal = Decimal("0")
    gross_profit_unpaid: Decimal = Decimal("0")
    remaining_payout_total: Decimal = Decimal("0")
    remaining_total_paid_out: Decimal = Decimal("0")
    remaining_agent_unpaid: Decimal = Decimal("0")
    remaining_deals_pre_p2: Decimal = Decimal("0")


@dataclass
class AdvanceEntry:
    """One row of the cash advance ledger."""

    agent_name: str
    entry_date: date | None = None
    description: str | None = None
    amount_paid_to_agent: Decimal = Decimal("0")
    amount_received_from_agent: Decimal = Decimal("0")
    opening_balance_adjustment: Decimal = Decimal("0")
    created_at: str | None = None

    @property
    def advance(self) -> Decimal:
        """Money handed to the agent, including opening balances."""
        return self.amount_paid_to_agent + self.opening_balance_adjustment

    @property
    def net(self) -> Decimal:
        """Change this entry makes to the agent's remaining balance."""
        return self.advance - self.amount_received_from_agent

    @classmethod
    def from_dict(cls, data: dict) -> "AdvanceEntry":
        return cls(
            agent_name=(data.get("agent_name") or "").strip(),
            entry_date=parse_date(data.get("date")),
            description=data.get("description"),
            amount_paid_to_agent=_zero(to_decimal(data.get("amount_paid_to_agent"))),
            amount_received_from_agent=_zero(to_decimal(data.get("amount_received_from_agent"))),
            opening_balance_adjustment=_zero(to_decimal(data.get("opening_balance_adjustment"))),
            created_at=data.get("created_at"),
        )


@dataclass
class AdvanceLedger:
    """Per-agent advance balances, repayment rate and leverage against unpaid payouts."""

    agent_name: str
    transaction_count: int = 0
    last_transaction_date: date | None = None
    total_advances: Decimal = Decimal("0")
    total_repayments: Decimal = Decimal("0")
    current_remaining_balance: Decimal = Decimal("0")
    previous_balance: Decimal = Decimal("0")
    latest_repayment: Decimal = Decimal("0")
    latest_advance: Decimal = Decimal("0")
    repayment_rate: Decimal | None = None
    difference: Decimal = Decimal("0")
    leverage: Decimal | None = None
    leverage_band: str | None = None


@dataclass
class PricingResult:
    """Resolved rules for a deal plus the snapshot built from them."""

    pricing_rule: PricingRule | None
    commission_rule: CommissionRule | None
    snapshot: PricingSnapshot
