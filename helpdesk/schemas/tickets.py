# helpdesk/schemas/tickets.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from helpdesk.db.models import CategoryEnum, PriorityEnum, TicketStatusEnum


class TicketBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    priority: PriorityEnum = Field(default=PriorityEnum.normal)
    category: CategoryEnum


class TicketCreate(TicketBase):
    # no creator field: the creator is always the acting user
    model_config = ConfigDict(extra="ignore")


class TicketUpdate(BaseModel):
    # every field optional; partial update
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[PriorityEnum] = None
    category: Optional[CategoryEnum] = None

    model_config = ConfigDict(extra="ignore")


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: TicketStatusEnum
    priority: PriorityEnum
    category: CategoryEnum
    creator_id: int
    assignee_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    open: int
    unassigned: int
    urgent: int
    average_resolution_hours: Optional[float] = None
    technicians: int = 0
    users: int = 0
    generated_at: str
