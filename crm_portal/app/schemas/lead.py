"""Lead schemas. Stage values are restricted to the pipeline vocabulary."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from crm_portal.app.services.stages import PipelineStage


LeadPriority = Literal["Low", "Medium", "High", "Critical"]


class LeadBase(BaseModel):
    organisation_id: Optional[int] = None
    contact_id: Optional[int] = None
    name: str
    stage: PipelineStage = PipelineStage.NEW_LEAD
    expected_value: Decimal = Decimal("0.00")
    probability: int = Field(default=10, ge=0, le=100)
    expected_close_date: str = ""
    owner: str = ""
    source: str = ""
    description: str = ""
    priority: LeadPriority = "Medium"


class LeadCreate(LeadBase):
    """Schema for lead creation requests."""


class LeadUpdate(BaseModel):
    """Schema for lead updates with partial fields."""

    organisation_id: Optional[int] = None
    contact_id: Optional[int] = None
    name: Optional[str] = None
    stage: Optional[PipelineStage] = None
    expected_value: Optional[Decimal] = None
    probability: Optional[int] = Field(default=None, ge=0, le=100)
    expected_close_date: Optional[str] = None
    owner: Optional[str] = None
    source: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[LeadPriority] = None


class LeadStageUpdate(BaseModel):
    stage: PipelineStage


class LeadBulkDelete(BaseModel):
    ids: List[int]


class LeadRead(LeadBase):
    """Schema for lead responses."""

    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
