"""Lead model for the sales pipeline."""

from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship, validates

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base
from crm_portal.app.services.stages import DEFAULT_STAGE, parse_stage


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    organisation_id = Column(Integer, ForeignKey("organisations.id"), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    stage = Column(String(50), nullable=False, default=DEFAULT_STAGE.value)
    expected_value = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    probability = Column(Integer, nullable=False, default=10)
    expected_close_date = Column(String(20), nullable=False, default="")
    owner = Column(String(255), nullable=False, default="")
    source = Column(String(100), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    priority = Column(String(20), nullable=False, default="Medium")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    organisation = relationship("Organisation", back_populates="leads")
    contact = relationship("Contact")

    @validates("stage")
    def _validate_stage(self, key, value):
        # Reject free text at the write path; raises UnknownStageError.
        return parse_stage(value).value
