"""Append-only activity log shown on the dashboard and lead timelines."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(50), nullable=False)
    subject = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    # Plain ids: history must outlive hard-deleted leads and contacts.
    lead_id = Column(Integer, nullable=True, index=True)
    contact_id = Column(Integer, nullable=True, index=True)
    organisation_id = Column(Integer, nullable=True, index=True)
    created_by = Column(String(255), nullable=False, default="")
    activity_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
