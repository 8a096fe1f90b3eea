"""Email templates, campaigns and the sent-email log."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    html_body = Column(Text, nullable=False, default="")
    created_by = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)


class EmailCampaign(Base):
    __tablename__ = "email_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    html_body = Column(Text, nullable=False, default="")
    template_id = Column(Integer, ForeignKey("email_templates.id"), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    total_recipients = Column(Integer, nullable=False, default=0)
    sent_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    opened_count = Column(Integer, nullable=False, default=0)
    clicked_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    template = relationship("EmailTemplate")
    emails = relationship("SentEmail", back_populates="campaign")


class SentEmail(Base):
    __tablename__ = "sent_emails"

    id = Column(Integer, primary_key=True, index=True)
    to_email = Column(String(255), nullable=False)
    to_name = Column(String(255), nullable=False, default="")
    from_email = Column(String(255), nullable=False, default="")
    from_name = Column(String(255), nullable=False, default="")
    subject = Column(String(255), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    html_body = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="sent")
    provider_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    contact_id = Column(Integer, nullable=True, index=True)
    organisation_id = Column(Integer, nullable=True, index=True)
    campaign_id = Column(Integer, ForeignKey("email_campaigns.id"), nullable=True, index=True)
    invoice_id = Column(Integer, nullable=True, index=True)
    sent_by = Column(String(255), nullable=False, default="")
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    campaign = relationship("EmailCampaign", back_populates="emails")
