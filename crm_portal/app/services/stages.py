"""Pipeline stage vocabulary and won/lost/active classification."""

from enum import Enum

from crm_portal.app.services.errors import UnknownStageError


class PipelineStage(str, Enum):
    NEW_LEAD = "New Lead"
    QUALIFIED_LEAD = "Qualified Lead"
    ENGAGED = "Engaged – Under Discussion"
    PROPOSAL_SENT = "Proposal / Pricing Sent"
    SECURITY_ASSESSMENT = "Security Assessment"
    AWAITING_DECISION = "Awaiting Decision"
    CONTRACTING = "Contracting / Legal"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"
    ON_HOLD = "On Hold"


class StageOutcome(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"


# Enum definition order is the sort rank.
PIPELINE_STAGES = tuple(stage.value for stage in PipelineStage)

DEFAULT_STAGE = PipelineStage.NEW_LEAD

_DEFAULT_PROBABILITY = {
    PipelineStage.NEW_LEAD: 10,
    PipelineStage.QUALIFIED_LEAD: 20,
    PipelineStage.ENGAGED: 40,
    PipelineStage.PROPOSAL_SENT: 60,
    PipelineStage.SECURITY_ASSESSMENT: 70,
    PipelineStage.AWAITING_DECISION: 80,
    PipelineStage.CONTRACTING: 90,
    PipelineStage.CLOSED_WON: 100,
    PipelineStage.CLOSED_LOST: 0,
    PipelineStage.ON_HOLD: 0,
}


def parse_stage(value) -> PipelineStage:
    """Return the PipelineStage for a label, rejecting anything else."""
    if isinstance(value, PipelineStage):
        return value
    try:
        return PipelineStage(value)
    except ValueError:
        raise UnknownStageError(value) from None


def classify(stage) -> StageOutcome:
    """Classify a stage label as active, won or lost.

    On Hold counts as active. Unknown labels raise UnknownStageError rather
    than falling back to a default.
    """
    parsed = parse_stage(stage)
    if parsed is PipelineStage.CLOSED_WON:
        return StageOutcome.WON
    if parsed is PipelineStage.CLOSED_LOST:
        return StageOutcome.LOST
    return StageOutcome.ACTIVE


def stage_rank(stage) -> int:
    return PIPELINE_STAGES.index(parse_stage(stage).value)


def default_probability(stage) -> int:
    return _DEFAULT_PROBABILITY[parse_stage(stage)]
