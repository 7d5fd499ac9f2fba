"""Conversation and message response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ConversationStart(BaseModel):
    customer_id: str = Field(min_length=1)


class ConversationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    title: Optional[str] = None
    status: str
    sentiment: str
    priority: str
    created_at: datetime
    updated_at: datetime


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: str
    content: str
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("msg_metadata", "metadata"),
    )
    created_at: datetime


class ConversationDetail(ConversationRead):
    """Conversation with its messages in chronological order."""
    messages: List[MessageRead]
