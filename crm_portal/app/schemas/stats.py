"""Dashboard and pipeline statistics schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class DashboardStats(BaseModel):
    total_leads: int
    active_leads: int
    total_organisations: int
    total_contacts: int
    pipeline_value: Decimal
    closed_won_value: Decimal
    conversion_rate: Decimal
    avg_deal_size: Decimal


class StageBucket(BaseModel):
    stage: str
    outcome: str
    count: int
    value: Decimal


class PipelineSummary(BaseModel):
    total_value: Decimal
    weighted_value: Decimal
    active_leads: int
    closed_won: int
    stages: List[StageBucket]


class StageInfo(BaseModel):
    stage: str
    rank: int
    outcome: str
    default_probability: int


class ActivityRead(BaseModel):
    id: int
    type: str
    subject: str
    description: str
    lead_id: Optional[int] = None
    contact_id: Optional[int] = None
    organisation_id: Optional[int] = None
    created_by: str
    activity_date: datetime

    model_config = ConfigDict(from_attributes=True)
