"""Client schemas, including the client view union."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


ClientStatus = Literal["onboarding", "active", "churned"]


class ClientBase(BaseModel):
    organisation_id: int
    plan: str = "Professional"
    status: ClientStatus = "onboarding"
    mrr: Decimal = Decimal("0.00")
    contract_start: Optional[datetime] = None
    contract_end: Optional[datetime] = None
    disp_compliant: bool = False
    notes: str = ""


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    plan: Optional[str] = None
    status: Optional[ClientStatus] = None
    mrr: Optional[Decimal] = None
    contract_start: Optional[datetime] = None
    contract_end: Optional[datetime] = None
    disp_compliant: Optional[bool] = None
    notes: Optional[str] = None


class ClientRead(ClientBase):
    id: int
    organisation_name: Optional[str] = None
    total_invoiced: Decimal = Decimal("0.00")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientStats(BaseModel):
    total_clients: int
    active_clients: int
    onboarding: int
    churned: int
    total_mrr: Decimal
    disp_compliant_count: int
    disp_compliance_rate: Decimal


class ClientFinancials(BaseModel):
    client_id: int
    total_invoiced: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal
    invoice_count: int
    payment_count: int


class RealClientViewRead(BaseModel):
    kind: Literal["client"] = "client"
    organisation_id: int
    organisation_name: Optional[str] = None
    client_id: int
    plan: str
    status: str
    mrr: Decimal


class InferredClientViewRead(BaseModel):
    kind: Literal["inferred"] = "inferred"
    organisation_id: int
    organisation_name: Optional[str] = None
    contact_id: int
    contact_name: str
    contact_status: str
    mrr: Decimal


ClientViewRead = Annotated[Union[RealClientViewRead, InferredClientViewRead], Field(discriminator="kind")]


class ClientViewList(BaseModel):
    views: List[ClientViewRead]
    total_mrr: Decimal
