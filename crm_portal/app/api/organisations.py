"""Organisation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.client import Client
from crm_portal.app.models.organisation import Organisation
from crm_portal.app.models.user import User
from crm_portal.app.schemas.organisation import OrganisationCreate, OrganisationRead, OrganisationUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organisations", tags=["organisations"])


def _get_organisation(db: Session, organisation_id: int) -> Organisation:
    organisation = db.query(Organisation).filter(Organisation.id == organisation_id).first()
    if not organisation:
        raise HTTPException(status_code=404, detail="Organisation not found")
    return organisation


@router.get("/", response_model=list[OrganisationRead])
async def list_organisations(
    search: str | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Organisation)
    if status:
        query = query.filter(Organisation.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Organisation.name.ilike(pattern),
                Organisation.email.ilike(pattern),
                Organisation.industry.ilike(pattern),
                Organisation.abn.ilike(pattern),
            )
        )
    return query.order_by(Organisation.created_at.desc(), Organisation.id.desc()).all()


@router.get("/{organisation_id}", response_model=OrganisationRead)
async def get_organisation(
    organisation_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return _get_organisation(db, organisation_id)


@router.post("/", response_model=OrganisationRead, status_code=status.HTTP_201_CREATED)
async def create_organisation(
    payload: OrganisationCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    organisation = Organisation(**payload.model_dump(), created_by=current_user.email)
    db.add(organisation)
    db.commit()
    db.refresh(organisation)
    logger.info("Created organisation %s (%s)", organisation.id, organisation.name)
    return organisation


@router.put("/{organisation_id}", response_model=OrganisationRead)
async def update_organisation(
    organisation_id: int,
    payload: OrganisationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    organisation = _get_organisation(db, organisation_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(organisation, field, value)
    db.commit()
    db.refresh(organisation)
    return organisation


@router.delete("/{organisation_id}")
async def delete_organisation(
    organisation_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    organisation = _get_organisation(db, organisation_id)
    if db.query(Client).filter(Client.organisation_id == organisation_id).first():
        raise HTTPException(status_code=400, detail="Delete the client record for this organisation first")
    db.delete(organisation)
    db.commit()
    logger.info("Deleted organisation %s", organisation_id)
    return {"status": "deleted", "id": organisation_id}
