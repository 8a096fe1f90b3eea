"""Contact model. Contacts reference an organisation but are not owned by it."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    organisation_id = Column(Integer, ForeignKey("organisations.id"), nullable=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    job_title = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    mobile = Column(String(50), nullable=False, default="")
    is_primary = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=False, default="")
    linkedin = Column(String(255), nullable=False, default="")
    status = Column(String(30), nullable=False, default="new")
    created_by = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    organisation = relationship("Organisation", back_populates="contacts")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
