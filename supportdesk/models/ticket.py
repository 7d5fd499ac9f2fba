"""Ticket SQLModel definition."""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from supportdesk.models.common import new_id, utcnow
from supportdesk.models.enums import TicketPriority, TicketStatus


class Ticket(SQLModel, table=True):
    """
    Support case, created by the escalation pipeline or manually by an agent.

    If conversation_id is set, customer_id must match the conversation's
    customer (checked in ticket_service / chat_service).
    """
    __tablename__ = "tickets"

    id: str = Field(default_factory=new_id, primary_key=True)
    conversation_id: Optional[str] = Field(
        default=None, foreign_key="conversations.id", index=True
    )
    customer_id: str = Field(foreign_key="customers.id", index=True, nullable=False)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    status: str = Field(default=TicketStatus.OPEN.value, max_length=20, index=True)
    priority: str = Field(default=TicketPriority.MEDIUM.value, max_length=20)
    category: Optional[str] = Field(default=None, max_length=50)
    assigned_to: Optional[str] = Field(default=None, max_length=255)
    resolution: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    resolved_at: Optional[datetime] = Field(default=None)
