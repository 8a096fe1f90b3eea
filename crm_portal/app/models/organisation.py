"""Organisation model: the companies the sales team works with."""

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class Organisation(Base):
    __tablename__ = "organisations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    address = Column(String(512), nullable=False, default="")
    website = Column(String(255), nullable=False, default="")
    industry = Column(String(100), nullable=False, default="")
    size = Column(String(50), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    abn = Column(String(20), nullable=False, default="")
    state = Column(String(20), nullable=False, default="")
    postcode = Column(String(10), nullable=False, default="")
    status = Column(String(20), nullable=False, default="prospect")
    created_by = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    contacts = relationship("Contact", back_populates="organisation")
    leads = relationship("Lead", back_populates="organisation")
    client = relationship("Client", back_populates="organisation", uselist=False)
