"""Dashboard and pipeline aggregation over in-memory entity snapshots.

Every function here is pure: callers pass lists of model rows (or any objects
exposing the same attributes) read at one point in time, and get derived
numbers back. Ratios always branch on a zero denominator and return zero.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Sequence

from crm_portal.app.schemas.champion import ChampionStats, TopPerformer
from crm_portal.app.schemas.client import ClientStats
from crm_portal.app.schemas.invoice import InvoiceStats
from crm_portal.app.schemas.payment import PaymentStats
from crm_portal.app.schemas.stats import DashboardStats, PipelineSummary, StageBucket
from crm_portal.app.services.stages import PipelineStage, StageOutcome, classify

ZERO = Decimal("0.00")
ONE_DP = Decimal("0.1")
TWO_DP = Decimal("0.01")
HUNDRED = Decimal("100")


def _dec(value) -> Decimal:
    return Decimal(str(value or 0))


def _pct(numerator, denominator, places: Decimal) -> Decimal:
    if not denominator:
        return Decimal("0").quantize(places)
    ratio = Decimal(numerator) / Decimal(denominator) * HUNDRED
    return ratio.quantize(places, rounding=ROUND_HALF_EVEN)


def _money_sum(values: Iterable) -> Decimal:
    return sum((_dec(v) for v in values), ZERO).quantize(TWO_DP)


def compute_dashboard_stats(leads: Sequence, organisations: Sequence, contacts: Sequence) -> DashboardStats:
    """Headline numbers for the CRM dashboard.

    Raises UnknownStageError if any lead carries a stage outside the
    vocabulary; the caller decides whether to exclude it or fail the read.
    """
    buckets = {StageOutcome.ACTIVE: [], StageOutcome.WON: [], StageOutcome.LOST: []}
    for lead in leads:
        buckets[classify(lead.stage)].append(lead)

    active = buckets[StageOutcome.ACTIVE]
    won = buckets[StageOutcome.WON]
    won_count = len(won)
    total_closed = won_count + len(buckets[StageOutcome.LOST])

    closed_won_value = _money_sum(lead.expected_value for lead in won)
    if won_count:
        avg_deal_size = (closed_won_value / won_count).quantize(TWO_DP, rounding=ROUND_HALF_EVEN)
    else:
        avg_deal_size = ZERO

    return DashboardStats(
        total_leads=len(leads),
        active_leads=len(active),
        total_organisations=len(organisations),
        total_contacts=len(contacts),
        pipeline_value=_money_sum(lead.expected_value for lead in active),
        closed_won_value=closed_won_value,
        conversion_rate=_pct(won_count, total_closed, ONE_DP),
        avg_deal_size=avg_deal_size,
    )


def compute_weighted_pipeline_value(leads: Iterable, active_only: bool = False) -> Decimal:
    """Sum of expected value scaled by close probability.

    By default every lead counts, closed ones included, matching what the
    pipeline page has always shown. Pass active_only=True to leave decided
    deals out.
    """
    total = ZERO
    for lead in leads:
        if active_only and classify(lead.stage) is not StageOutcome.ACTIVE:
            continue
        total += _dec(lead.expected_value) * Decimal(lead.probability or 0) / HUNDRED
    return total.quantize(TWO_DP, rounding=ROUND_HALF_EVEN)


def compute_champion_conversion_rate(allocated_sale: int, active_clients: int) -> Decimal:
    """Active clients as a percentage of the allocated target; not clamped at 100."""
    if allocated_sale is None or allocated_sale <= 0:
        return ZERO
    return _pct(active_clients or 0, allocated_sale, TWO_DP)


def compute_pipeline_summary(leads: Sequence) -> PipelineSummary:
    per_stage = {stage: {"count": 0, "value": ZERO} for stage in PipelineStage}
    active_leads = 0
    closed_won = 0
    for lead in leads:
        outcome = classify(lead.stage)
        if outcome is StageOutcome.ACTIVE:
            active_leads += 1
        elif outcome is StageOutcome.WON:
            closed_won += 1
        bucket = per_stage[PipelineStage(lead.stage)]
        bucket["count"] += 1
        bucket["value"] += _dec(lead.expected_value)

    stages = [
        StageBucket(
            stage=stage.value,
            outcome=classify(stage).value,
            count=data["count"],
            value=data["value"].quantize(TWO_DP),
        )
        for stage, data in per_stage.items()
    ]
    return PipelineSummary(
        total_value=_money_sum(lead.expected_value for lead in leads),
        weighted_value=compute_weighted_pipeline_value(leads),
        active_leads=active_leads,
        closed_won=closed_won,
        stages=stages,
    )


def compute_client_stats(clients: Sequence) -> ClientStats:
    total = len(clients)
    disp_compliant = sum(1 for c in clients if c.disp_compliant)
    return ClientStats(
        total_clients=total,
        active_clients=sum(1 for c in clients if c.status == "active"),
        onboarding=sum(1 for c in clients if c.status == "onboarding"),
        churned=sum(1 for c in clients if c.status == "churned"),
        total_mrr=_money_sum(c.mrr for c in clients if c.status == "active"),
        disp_compliant_count=disp_compliant,
        disp_compliance_rate=_pct(disp_compliant, total, TWO_DP),
    )


def compute_champion_stats(champions: Sequence, top_n: int = 5) -> ChampionStats:
    count = len(champions)
    if count:
        avg_conversion = (_money_sum(c.conversion_rate for c in champions) / count).quantize(
            TWO_DP, rounding=ROUND_HALF_EVEN
        )
        avg_score = (_money_sum(c.performance_score for c in champions) / count).quantize(
            TWO_DP, rounding=ROUND_HALF_EVEN
        )
    else:
        avg_conversion = ZERO
        avg_score = ZERO

    ranked = sorted(champions, key=lambda c: _dec(c.performance_score), reverse=True)[:top_n]
    return ChampionStats(
        total_champions=count,
        total_targeted_clients=sum(c.allocated_sale or 0 for c in champions),
        total_active_clients=sum(c.active_clients or 0 for c in champions),
        average_conversion_rate=avg_conversion,
        average_performance_score=avg_score,
        top_performers=[
            TopPerformer(id=c.id, name=c.name, performance_score=_dec(c.performance_score)) for c in ranked
        ],
    )


def compute_invoice_stats(invoices: Sequence) -> InvoiceStats:
    total_amount = _money_sum(i.total_amount for i in invoices)
    paid_amount = _money_sum(i.total_amount for i in invoices if i.status == "paid")
    return InvoiceStats(
        total_invoices=len(invoices),
        total_amount=total_amount,
        paid_amount=paid_amount,
        unpaid_amount=total_amount - paid_amount,
        overdue_amount=_money_sum(i.total_amount for i in invoices if i.status == "overdue"),
    )


def compute_payment_stats(payments: Sequence) -> PaymentStats:
    return PaymentStats(
        total_payments=len(payments),
        total_amount=_money_sum(p.amount for p in payments),
    )


def compute_campaign_rates(campaign) -> dict:
    return {
        "open_rate": _pct(campaign.opened_count or 0, campaign.sent_count or 0, ONE_DP),
        "click_rate": _pct(campaign.clicked_count or 0, campaign.sent_count or 0, ONE_DP),
    }
