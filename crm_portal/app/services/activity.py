"""Activity log helpers. Activities are only ever appended."""

from sqlalchemy.orm import Session

from crm_portal.app.models.activity import Activity


def log_activity(
    db: Session,
    activity_type: str,
    subject: str,
    description: str = "",
    *,
    lead_id: int | None = None,
    contact_id: int | None = None,
    organisation_id: int | None = None,
    created_by: str = "",
) -> Activity:
    activity = Activity(
        type=activity_type,
        subject=subject,
        description=description,
        lead_id=lead_id,
        contact_id=contact_id,
        organisation_id=organisation_id,
        created_by=created_by,
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def recent_activities(
    db: Session, limit: int = 20, lead_id: int | None = None, contact_id: int | None = None
) -> list[Activity]:
    query = db.query(Activity)
    if lead_id is not None:
        query = query.filter(Activity.lead_id == lead_id)
    if contact_id is not None:
        query = query.filter(Activity.contact_id == contact_id)
    return query.order_by(Activity.activity_date.desc(), Activity.id.desc()).limit(limit).all()
