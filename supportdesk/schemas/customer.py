"""Customer request/response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from supportdesk.schemas.conversation import ConversationRead
from supportdesk.schemas.ticket import TicketRead


class CustomerLogin(BaseModel):
    """Identity handed over by the auth provider after sign-in."""
    user_id: str = Field(min_length=1)
    email: str = Field(min_length=3)
    name: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("preferences", mode="before")
    @classmethod
    def null_preferences_to_empty(cls, v):
        return {} if v is None else v


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class CustomerPanel(BaseModel):
    """Side panel shown next to a ticket in the agent dashboard."""
    customer: CustomerRead
    recent_tickets: List[TicketRead]
    recent_conversations: List[ConversationRead]
