"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


PaymentMethod = Literal["bank_transfer", "credit_card", "cheque", "cash"]


class PaymentBase(BaseModel):
    amount: Decimal = Field(gt=0)
    payment_method: PaymentMethod = "bank_transfer"
    payment_date: Optional[datetime] = None
    reference: str = ""
    notes: str = ""


class PaymentCreate(PaymentBase):
    client_id: int
    invoice_id: Optional[int] = None


class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payment_method: Optional[PaymentMethod] = None
    payment_date: Optional[datetime] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class PaymentRead(PaymentBase):
    id: int
    client_id: int
    invoice_id: Optional[int] = None
    payment_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentStats(BaseModel):
    total_payments: int
    total_amount: Decimal
