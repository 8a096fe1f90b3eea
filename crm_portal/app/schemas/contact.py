"""Contact schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


ContactStatus = Literal["new", "contacted", "qualified", "converted", "client", "client-expansion"]


class ContactBase(BaseModel):
    organisation_id: Optional[int] = None
    first_name: str
    last_name: str
    job_title: str = ""
    email: str = ""
    phone: str = ""
    mobile: str = ""
    is_primary: bool = False
    notes: str = ""
    linkedin: str = ""
    status: ContactStatus = "new"


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    organisation_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    is_primary: Optional[bool] = None
    notes: Optional[str] = None
    linkedin: Optional[str] = None
    status: Optional[ContactStatus] = None


class ContactRead(ContactBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
