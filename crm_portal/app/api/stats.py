"""Dashboard statistics endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.contact import Contact
from crm_portal.app.models.lead import Lead
from crm_portal.app.models.organisation import Organisation
from crm_portal.app.models.user import User
from crm_portal.app.schemas.stats import ActivityRead, DashboardStats
from crm_portal.app.services.activity import recent_activities
from crm_portal.app.services.aggregation import compute_dashboard_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/", response_model=DashboardStats)
async def dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # One snapshot of each table; the numbers are only consistent within a read.
    leads = db.query(Lead).all()
    organisations = db.query(Organisation).all()
    contacts = db.query(Contact).all()
    return compute_dashboard_stats(leads, organisations, contacts)


@router.get("/activities", response_model=list[ActivityRead])
async def list_recent_activities(
    limit: int = Query(default=20, ge=1, le=200),
    lead_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return recent_activities(db, limit=limit, lead_id=lead_id)
