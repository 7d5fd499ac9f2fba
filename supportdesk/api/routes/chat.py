"""Chat and conversation routes.

Provides:
- POST /api/chat - Send a message to the assistant
- POST /api/conversations - Get or start the customer's active conversation
- GET /api/conversations/{id} - Get conversation with messages
- GET /api/customers/{customer_id}/conversations - List customer's conversations
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from supportdesk.core.deps import get_chat_service, get_db
from supportdesk.schemas.chat import ChatMetadata, ChatRequest, ChatResponse
from supportdesk.schemas.conversation import (
    ConversationDetail,
    ConversationRead,
    ConversationStart,
    MessageRead,
)
from supportdesk.schemas.ticket import TicketRead
from supportdesk.services import conversation_service
from supportdesk.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def send_chat_message(
    request: ChatRequest,
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """
    Send message to the AI assistant.

    Flow:
    1. Validate required fields
    2. Check rate limit
    3. Store user message, generate reply, classify, maybe open a ticket
    4. Return reply, conversation patch and created ticket

    Raises:
        HTTPException: 400 if a required field is missing
        HTTPException: 404 if customer/conversation not found or not owned
        HTTPException: 429 if rate limit exceeded
        HTTPException: 500 if reply generation fails
    """
    message = (request.message or "").strip()
    if not message or not request.conversation_id or not request.customer_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )

    if not chat_service.check_rate_limit(request.customer_id):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
        )

    try:
        turn = chat_service.process_turn(
            session,
            customer_id=request.customer_id,
            conversation_id=request.conversation_id,
            message_text=request.message,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except Exception:
        # Reply generation or database failure
        logger.exception(
            f"Chat API error: customer={request.customer_id}, "
            f"conversation={request.conversation_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    outcome = turn.outcome
    return ChatResponse(
        response=outcome.reply,
        conversation_update=turn.conversation_update,
        ticket_created=TicketRead.model_validate(turn.ticket) if turn.ticket else None,
        metadata=ChatMetadata(
            sentiment=outcome.sentiment,
            should_create_ticket=outcome.should_create_ticket,
            model=outcome.model,
            tokens=outcome.tokens,
        ),
    )


@router.post("/conversations", response_model=ConversationRead)
def start_conversation(
    request: ConversationStart,
    session: Session = Depends(get_db),
) -> ConversationRead:
    """Return the customer's active conversation, creating one if needed."""
    try:
        conversation = conversation_service.get_or_create_active_conversation(
            session, request.customer_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ConversationRead.model_validate(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: str,
    session: Session = Depends(get_db),
) -> ConversationDetail:
    try:
        conversation = conversation_service.get_conversation_or_raise(session, conversation_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    messages = conversation_service.list_messages(session, conversation_id)
    return ConversationDetail(
        **ConversationRead.model_validate(conversation).model_dump(),
        messages=[MessageRead.model_validate(msg) for msg in messages],
    )


@router.get("/customers/{customer_id}/conversations", response_model=list[ConversationRead])
def list_conversations(
    customer_id: str,
    session: Session = Depends(get_db),
) -> list[ConversationRead]:
    conversations = conversation_service.list_conversations(session, customer_id)
    return [ConversationRead.model_validate(c) for c in conversations]
