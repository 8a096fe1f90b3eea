"""Organisation schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


OrganisationStatus = Literal["prospect", "active", "partner", "inactive"]


class OrganisationBase(BaseModel):
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""
    website: str = ""
    industry: str = ""
    size: str = ""
    notes: str = ""
    abn: str = ""
    state: str = ""
    postcode: str = ""
    status: OrganisationStatus = "prospect"


class OrganisationCreate(OrganisationBase):
    pass


class OrganisationUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    notes: Optional[str] = None
    abn: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    status: Optional[OrganisationStatus] = None


class OrganisationRead(OrganisationBase):
    id: int
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
