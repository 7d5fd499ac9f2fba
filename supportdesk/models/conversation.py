"""Conversation and Message SQLModel definitions.

Models:
- Conversation: chat thread between one customer and the assistant/agents
- Message: individual message in a conversation (append-only)
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from supportdesk.models.common import new_id, utcnow
from supportdesk.models.enums import (
    ConversationStatus,
    MessageRole,
    Sentiment,
    TicketPriority,
)


class Conversation(SQLModel, table=True):
    """
    Conversation entity.

    Ownership: each conversation belongs to exactly one customer.
    Status moves active -> escalated when the pipeline opens a ticket.
    """
    __tablename__ = "conversations"

    id: str = Field(default_factory=new_id, primary_key=True)
    customer_id: str = Field(foreign_key="customers.id", index=True, nullable=False)
    title: Optional[str] = Field(max_length=255, default=None)
    status: str = Field(default=ConversationStatus.ACTIVE.value, max_length=20)
    sentiment: str = Field(default=Sentiment.NEUTRAL.value, max_length=20)
    priority: str = Field(default=TicketPriority.MEDIUM.value, max_length=20)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Message(SQLModel, table=True):
    """
    Message entity for conversations.

    Role: "user", "assistant" or "system".
    msg_metadata holds attachment descriptors, model name and token counts;
    it is stored in the "metadata" column.
    """
    __tablename__ = "messages"

    id: str = Field(default_factory=new_id, primary_key=True)
    conversation_id: str = Field(foreign_key="conversations.id", index=True, nullable=False)
    role: str = Field(default=MessageRole.USER.value, max_length=20)
    content: str = Field()
    msg_metadata: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column("metadata", JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utcnow)
