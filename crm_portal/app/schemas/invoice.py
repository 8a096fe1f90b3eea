"""Invoice schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]


class LineItemIn(BaseModel):
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0.00")


class LineItemRead(BaseModel):
    id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(BaseModel):
    client_id: int
    invoice_number: str = ""
    description: str = ""
    amount: Decimal = Decimal("0.00")
    tax_rate: Decimal = Field(default=Decimal("0.00"), ge=0)
    status: InvoiceStatus = "draft"
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    notes: str = ""
    line_items: Optional[List[LineItemIn]] = None


class InvoiceUpdate(BaseModel):
    invoice_number: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    tax: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[InvoiceStatus] = None
    issue_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    line_items: Optional[List[LineItemIn]] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    invoice_number: str
    description: str
    amount: Decimal
    tax_rate: Decimal
    tax: Decimal
    total_amount: Decimal
    status: str
    issue_date: datetime
    due_date: Optional[datetime]
    paid_date: Optional[datetime]
    notes: str
    line_items: List[LineItemRead] = []

    created_at: datetime
    updated_at: datetime


class TotalsPreviewRequest(BaseModel):
    line_items: List[LineItemIn]
    tax_rate: Decimal = Decimal("0.00")


class InvoiceTotalsRead(BaseModel):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class InvoiceStats(BaseModel):
    total_invoices: int
    total_amount: Decimal
    paid_amount: Decimal
    unpaid_amount: Decimal
    overdue_amount: Decimal


class BulkInvoiceSend(BaseModel):
    invoice_ids: List[int]
