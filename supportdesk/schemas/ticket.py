"""Ticket request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from supportdesk.models.enums import TicketCategory, TicketPriority, TicketStatus


class TicketCreate(BaseModel):
    """Manual ticket creation by an agent."""
    customer_id: str
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    conversation_id: Optional[str] = None
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    category: Optional[TicketCategory] = None
    assigned_to: Optional[str] = None


class TicketUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    category: Optional[TicketCategory] = None
    assigned_to: Optional[str] = None
    resolution: Optional[str] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def reject_null(cls, v):
        # May be omitted, but never cleared
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    company: Optional[str] = None


class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: Optional[str] = None
    customer_id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    category: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None


class TicketWithCustomer(TicketRead):
    """Agent queue row: ticket joined with its customer."""
    customer: Optional[CustomerSummary] = None
