"""Champion schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChampionBase(BaseModel):
    name: str
    email: str
    phone: str = ""
    role: str = ""
    organization_name: str = ""
    address: str = ""
    allocated_sale: int = Field(default=0, ge=0)
    active_clients: int = Field(default=0, ge=0)
    performance_score: Decimal = Decimal("0.00")


class ChampionCreate(ChampionBase):
    pass


class ChampionUpdate(ChampionBase):
    pass


class ChampionFromEntity(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    organization_name: Optional[str] = None
    source_type: Literal["contact", "lead", "client"]
    source_id: Optional[int] = None


class ChampionRead(ChampionBase):
    id: int
    conversion_rate: Decimal
    last_activity: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChampionCheck(BaseModel):
    is_champion: bool
    champion: Optional[ChampionRead] = None


class TopPerformer(BaseModel):
    id: int
    name: str
    performance_score: Decimal


class ChampionStats(BaseModel):
    total_champions: int
    total_targeted_clients: int
    total_active_clients: int
    average_conversion_rate: Decimal
    average_performance_score: Decimal
    top_performers: List[TopPerformer]
