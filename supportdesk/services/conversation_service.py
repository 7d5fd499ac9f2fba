"""Conversation and message storage."""
from typing import Any, Dict, List, Optional
import logging

from sqlmodel import Session, select

from supportdesk.models.common import utcnow
from supportdesk.models.conversation import Conversation, Message
from supportdesk.models.enums import ConversationStatus
from supportdesk.services.customer_service import get_customer_or_raise

logger = logging.getLogger(__name__)


def get_or_create_active_conversation(session: Session, customer_id: str) -> Conversation:
    """
    Reuse the customer's most recent active conversation, or start one.

    Raises:
        ValueError: If the customer does not exist
    """
    get_customer_or_raise(session, customer_id)

    statement = (
        select(Conversation)
        .where(
            Conversation.customer_id == customer_id,
            Conversation.status == ConversationStatus.ACTIVE.value,
        )
        .order_by(Conversation.updated_at.desc())
    )
    conversation = session.exec(statement).first()
    if conversation:
        return conversation

    conversation = Conversation(customer_id=customer_id)
    session.add(conversation)
    session.commit()
    session.refresh(conversation)

    logger.info(f"Conversation started: customer={customer_id}, conversation={conversation.id}")
    return conversation


def get_conversation_or_raise(session: Session, conversation_id: str) -> Conversation:
    """
    Raises:
        ValueError: If the conversation does not exist
    """
    conversation = session.get(Conversation, conversation_id)
    if not conversation:
        raise ValueError(f"Conversation {conversation_id} not found")
    return conversation


def list_conversations(session: Session, customer_id: str) -> List[Conversation]:
    statement = (
        select(Conversation)
        .where(Conversation.customer_id == customer_id)
        .order_by(Conversation.updated_at.desc())
    )
    return list(session.exec(statement).all())


def list_messages(session: Session, conversation_id: str) -> List[Message]:
    """All messages of a conversation in chronological order."""
    statement = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at)
    )
    return list(session.exec(statement).all())


def recent_messages(session: Session, conversation_id: str, limit: int = 10) -> List[Message]:
    """The last `limit` messages, oldest first."""
    statement = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.desc())
        .limit(limit)
    )
    return list(reversed(session.exec(statement).all()))


def store_message(
    session: Session,
    conversation_id: str,
    role: str,
    content: str,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> Message:
    """
    Append a message to an existing conversation.

    Raises:
        ValueError: If the conversation does not exist
    """
    get_conversation_or_raise(session, conversation_id)

    message = Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        msg_metadata=metadata or {},
    )
    session.add(message)
    if commit:
        session.commit()
        session.refresh(message)
    return message


def apply_conversation_update(
    session: Session, conversation: Conversation, update: Dict[str, Any]
) -> Conversation:
    """Apply a pipeline patch (sentiment / status); updated_at is always refreshed."""
    if "sentiment" in update:
        conversation.sentiment = update["sentiment"]
    if "status" in update:
        conversation.status = update["status"]
    conversation.updated_at = utcnow()
    session.add(conversation)
    return conversation
