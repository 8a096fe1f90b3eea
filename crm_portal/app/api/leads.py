"""Lead management endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.lead import Lead
from crm_portal.app.models.user import User
from crm_portal.app.schemas.lead import LeadBulkDelete, LeadCreate, LeadRead, LeadStageUpdate, LeadUpdate
from crm_portal.app.services.activity import log_activity
from crm_portal.app.services.stages import PipelineStage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


def _get_lead(db: Session, lead_id: int) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.post("/", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
async def create_lead(lead_in: LeadCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    lead = Lead(**lead_in.model_dump())
    db.add(lead)
    db.commit()
    db.refresh(lead)
    log_activity(
        db,
        "lead_created",
        f"Lead created: {lead.name}",
        lead_id=lead.id,
        organisation_id=lead.organisation_id,
        created_by=current_user.email,
    )
    logger.info("Created lead %s in stage %s", lead.id, lead.stage)
    return lead


@router.get("/", response_model=list[LeadRead])
async def list_leads(
    stage: PipelineStage | None = None,
    organisation_id: int | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 100,
    sort_by: str | None = "created_at",
    sort_order: str | None = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Lead)
    if stage:
        query = query.filter(Lead.stage == stage.value)
    if organisation_id is not None:
        query = query.filter(Lead.organisation_id == organisation_id)
    if search:
        tokens = [t for t in search.split() if t]
        for token in tokens:
            pattern = f"%{token}%"
            query = query.filter(
                or_(
                    Lead.name.ilike(pattern),
                    Lead.description.ilike(pattern),
                    Lead.owner.ilike(pattern),
                    Lead.source.ilike(pattern),
                )
            )
    supported_sort_fields = {
        "created_at": Lead.created_at,
        "stage": Lead.stage,
        "expected_value": Lead.expected_value,
        "probability": Lead.probability,
        "name": Lead.name,
    }
    sort_field = sort_by or "created_at"
    if sort_field not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_column = supported_sort_fields[sort_field]

    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")

    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Lead.id.asc()]
    else:
        order_by_clause = [sort_column.desc(), Lead.id.desc()]

    return query.order_by(*order_by_clause).offset(skip).limit(limit).all()


@router.post("/bulk-delete")
async def bulk_delete_leads(
    payload: LeadBulkDelete, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if not payload.ids:
        raise HTTPException(status_code=400, detail="No lead ids supplied")
    deleted = db.query(Lead).filter(Lead.id.in_(payload.ids)).delete(synchronize_session=False)
    db.commit()
    logger.info("Bulk deleted %d leads", deleted)
    return {"status": "deleted", "deleted_count": deleted}


@router.delete("/")
async def delete_all_leads(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    deleted = db.query(Lead).delete(synchronize_session=False)
    db.commit()
    logger.warning("Deleted all %d leads at the request of %s", deleted, current_user.email)
    return {"status": "deleted", "deleted_count": deleted}


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_lead(db, lead_id)


@router.put("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: int, lead_in: LeadUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    lead = _get_lead(db, lead_id)
    old_stage = lead.stage
    changed_fields: list[str] = []
    for field, value in lead_in.model_dump(exclude_unset=True).items():
        if value is None and field not in ("organisation_id", "contact_id"):
            continue
        if field == "stage":
            value = value.value
        if getattr(lead, field) != value:
            setattr(lead, field, value)
            changed_fields.append(field)
    db.commit()
    db.refresh(lead)
    if "stage" in changed_fields:
        log_activity(
            db,
            "stage_change",
            f"Stage changed from {old_stage} to {lead.stage}",
            lead_id=lead.id,
            organisation_id=lead.organisation_id,
            created_by=current_user.email,
        )
    other_changes = [f for f in changed_fields if f != "stage"]
    if other_changes:
        log_activity(
            db,
            "lead_updated",
            "Lead updated",
            "; ".join(f"{f} changed" for f in other_changes),
            lead_id=lead.id,
            organisation_id=lead.organisation_id,
            created_by=current_user.email,
        )
    return lead


@router.patch("/{lead_id}/stage", response_model=LeadRead)
async def update_lead_stage(
    lead_id: int,
    payload: LeadStageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lead = _get_lead(db, lead_id)
    old_stage = lead.stage
    if old_stage == payload.stage.value:
        return lead
    lead.stage = payload.stage
    db.commit()
    db.refresh(lead)
    log_activity(
        db,
        "stage_change",
        f"Stage changed from {old_stage} to {lead.stage}",
        lead_id=lead.id,
        organisation_id=lead.organisation_id,
        created_by=current_user.email,
    )
    logger.info("Lead %s moved from %s to %s", lead.id, old_stage, lead.stage)
    return lead


@router.delete("/{lead_id}")
async def delete_lead(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    lead = _get_lead(db, lead_id)
    log_activity(
        db,
        "lead_deleted",
        f"Lead deleted: {lead.name}",
        lead_id=lead.id,
        organisation_id=lead.organisation_id,
        created_by=current_user.email,
    )
    db.delete(lead)
    db.commit()
    return {"status": "deleted", "id": lead_id}
