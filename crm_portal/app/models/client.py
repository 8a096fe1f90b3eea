"""Client model: an organisation that has signed up."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    organisation_id = Column(Integer, ForeignKey("organisations.id"), nullable=False, unique=True, index=True)
    plan = Column(String(50), nullable=False, default="Professional")
    status = Column(String(20), nullable=False, default="onboarding")
    mrr = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    contract_start = Column(DateTime(timezone=True), nullable=True)
    contract_end = Column(DateTime(timezone=True), nullable=True)
    disp_compliant = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    organisation = relationship("Organisation", back_populates="client")
    invoices = relationship("Invoice", back_populates="client", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="client", cascade="all, delete-orphan")
