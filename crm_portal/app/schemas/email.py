"""Email sending, campaign and template schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class EmailSendRequest(BaseModel):
    to_email: EmailStr
    to_name: str = ""
    subject: str
    body: str = ""
    html_body: str = ""
    contact_id: Optional[int] = None
    organisation_id: Optional[int] = None


class BulkSendRequest(BaseModel):
    contact_ids: List[int]
    subject: str
    body: str = ""
    html_body: Optional[str] = None
    template_id: Optional[int] = None
    campaign_name: Optional[str] = None


class BulkSendResult(BaseModel):
    total_contacts: int
    sent_count: int
    failed_count: int
    campaign_id: Optional[int] = None
    message: str


class SentEmailRead(BaseModel):
    id: int
    to_email: str
    to_name: str
    subject: str
    status: str
    provider_id: Optional[str] = None
    error_message: Optional[str] = None
    contact_id: Optional[int] = None
    campaign_id: Optional[int] = None
    invoice_id: Optional[int] = None
    sent_by: str
    sent_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CampaignRead(BaseModel):
    id: int
    name: str
    subject: str
    status: str
    total_recipients: int
    sent_count: int
    failed_count: int
    opened_count: int
    clicked_count: int
    open_rate: Decimal
    click_rate: Decimal
    created_at: datetime
    sent_at: Optional[datetime] = None


class CampaignDetail(CampaignRead):
    emails: List[SentEmailRead] = []


class TemplateBase(BaseModel):
    name: str
    subject: str = ""
    body: str = ""
    html_body: str = ""


class TemplateCreate(TemplateBase):
    pass


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    html_body: Optional[str] = None


class TemplateRead(TemplateBase):
    id: int
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TemplatePreviewRequest(BaseModel):
    variables: Dict[str, str] = {}


class TemplatePreview(BaseModel):
    subject: str
    body: str
    html_body: str
