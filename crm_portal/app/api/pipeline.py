"""Pipeline vocabulary and board summary."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.lead import Lead
from crm_portal.app.models.user import User
from crm_portal.app.schemas.stats import PipelineSummary, StageInfo
from crm_portal.app.services.aggregation import compute_pipeline_summary
from crm_portal.app.services.stages import PipelineStage, classify, default_probability, stage_rank

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("/stages", response_model=list[StageInfo])
async def list_stages():
    return [
        StageInfo(
            stage=stage.value,
            rank=stage_rank(stage),
            outcome=classify(stage).value,
            default_probability=default_probability(stage),
        )
        for stage in PipelineStage
    ]


@router.get("/summary", response_model=PipelineSummary)
async def pipeline_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return compute_pipeline_summary(db.query(Lead).all())
