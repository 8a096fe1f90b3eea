"""Contact endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.contact import Contact
from crm_portal.app.models.organisation import Organisation
from crm_portal.app.models.user import User
from crm_portal.app.schemas.contact import ContactCreate, ContactRead, ContactUpdate
from crm_portal.app.schemas.stats import ActivityRead
from crm_portal.app.services.activity import log_activity, recent_activities

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])

TRACKED_FIELDS = {
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
    "phone": "Phone",
    "status": "Status",
}


def _get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


def _check_organisation(db: Session, organisation_id: int | None) -> None:
    if organisation_id is None:
        return
    if not db.query(Organisation).filter(Organisation.id == organisation_id).first():
        raise HTTPException(status_code=400, detail="Organisation not found")


@router.get("/", response_model=list[ContactRead])
async def list_contacts(
    organisation_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Contact)
    if organisation_id is not None:
        query = query.filter(Contact.organisation_id == organisation_id)
    if status:
        query = query.filter(Contact.status == status)
    if search:
        for token in [t for t in search.split() if t]:
            pattern = f"%{token}%"
            query = query.filter(
                or_(
                    Contact.first_name.ilike(pattern),
                    Contact.last_name.ilike(pattern),
                    Contact.email.ilike(pattern),
                    Contact.job_title.ilike(pattern),
                )
            )
    return query.order_by(Contact.created_at.desc(), Contact.id.desc()).all()


@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(contact_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_contact(db, contact_id)


@router.post("/", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
async def create_contact(
    payload: ContactCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    _check_organisation(db, payload.organisation_id)
    contact = Contact(**payload.model_dump(), created_by=current_user.email)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    log_activity(
        db,
        "contact_created",
        f"Contact {contact.full_name} was created",
        contact_id=contact.id,
        organisation_id=contact.organisation_id,
        created_by=current_user.email,
    )
    logger.info("Created contact %s", contact.id)
    return contact


@router.put("/{contact_id}", response_model=ContactRead)
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = _get_contact(db, contact_id)
    changes = payload.model_dump(exclude_unset=True)
    if "organisation_id" in changes:
        _check_organisation(db, changes["organisation_id"])
    tracked = []
    for field, value in changes.items():
        if value is not None or field == "organisation_id":
            if field in TRACKED_FIELDS and getattr(contact, field) != value:
                tracked.append((field, getattr(contact, field), value))
            setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    for field, old, new in tracked:
        log_activity(
            db,
            "contact_status_change" if field == "status" else "contact_updated",
            f"{TRACKED_FIELDS[field]} changed from '{old}' to '{new}'",
            contact_id=contact.id,
            organisation_id=contact.organisation_id,
            created_by=current_user.email,
        )
    return contact


@router.get("/{contact_id}/activities", response_model=list[ActivityRead])
async def list_contact_activities(
    contact_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_contact(db, contact_id)
    return recent_activities(db, limit=limit, contact_id=contact_id)


@router.delete("/{contact_id}")
async def delete_contact(contact_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    contact = _get_contact(db, contact_id)
    db.delete(contact)
    db.commit()
    logger.info("Deleted contact %s", contact_id)
    return {"status": "deleted", "id": contact_id}
