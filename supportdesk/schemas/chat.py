"""Request/response models for the chat endpoint.

Field aliases keep the camelCase wire format used by the chat client.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from supportdesk.schemas.ticket import TicketRead


class ChatRequest(BaseModel):
    """Request model for sending a chat message.

    Fields are optional at the schema level so the route can answer a
    missing field with 400 instead of a 422 validation error.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    customer_id: Optional[str] = Field(default=None, alias="customerId")


class ChatMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sentiment: str
    should_create_ticket: bool = Field(alias="shouldCreateTicket")
    model: str
    tokens: Optional[int] = None


class ChatResponse(BaseModel):
    """Response model for one chat turn."""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    conversation_update: Dict[str, Any] = Field(alias="conversationUpdate")
    ticket_created: Optional[TicketRead] = Field(default=None, alias="ticketCreated")
    metadata: ChatMetadata
