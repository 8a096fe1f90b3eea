"""Champion model: referral partners tracked against a sales target."""

from decimal import Decimal

from sqlalchemy import Column, DateTime, Integer, Numeric, String

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.base_class import Base


class Champion(Base):
    __tablename__ = "champions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, default="", index=True)
    phone = Column(String(50), nullable=False, default="")
    role = Column(String(100), nullable=False, default="")
    organization_name = Column(String(255), nullable=False, default="")
    address = Column(String(512), nullable=False, default="")
    allocated_sale = Column(Integer, nullable=False, default=0)
    active_clients = Column(Integer, nullable=False, default=0)
    conversion_rate = Column(Numeric(7, 2), nullable=False, default=Decimal("0.00"))
    performance_score = Column(Numeric(7, 2), nullable=False, default=Decimal("0.00"))
    last_activity = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)
