"""Chat service layer for the customer-facing assistant.

Handles:
- Rate limiting (per customer, per minute)
- Context loading (recent messages, customer profile, prior tickets)
- Message storage (user + assistant)
- Escalation pipeline integration and ticket creation
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import logging
import threading

from sqlmodel import Session

from supportdesk.config import settings
from supportdesk.models.common import utcnow
from supportdesk.models.enums import MessageRole, TicketCategory, TicketPriority, TicketStatus
from supportdesk.models.ticket import Ticket
from supportdesk.schemas.ticket import TicketCreate
from supportdesk.services import conversation_service, ticket_service
from supportdesk.services.customer_service import get_customer_or_raise
from supportdesk.services.escalation import EscalationOutcome, EscalationPipeline

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window rate limiting per customer.

    Only the current minute's counts are held; they are dropped as soon as a
    request arrives in a later minute.
    """

    def __init__(self, max_requests_per_minute: int = 20):
        self.max_requests = max_requests_per_minute
        self._window: Optional[datetime] = None
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        return len(self._counts)

    def check_and_increment(self, key: str, now: Optional[datetime] = None) -> bool:
        """
        Count one request for ``key``.

        Returns:
            True if request allowed, False if rate limit exceeded
        """
        minute = (now or utcnow()).replace(second=0, microsecond=0)

        with self._lock:
            if self._window is None or minute > self._window:
                self._window = minute
                self._counts.clear()

            if self._counts[key] >= self.max_requests:
                return False
            self._counts[key] += 1
            return True


@dataclass
class ChatTurn:
    """Result of one processed chat message."""
    outcome: EscalationOutcome
    conversation_update: Dict[str, Any]
    ticket: Optional[Ticket] = None


class ChatService:
    """Service layer for chat operations."""

    def __init__(
        self,
        pipeline: Optional[EscalationPipeline] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """Initialize chat service."""
        self.pipeline = pipeline or EscalationPipeline()
        self.rate_limiter = rate_limiter or RateLimiter(settings.CHAT_RATE_LIMIT_PER_MINUTE)

    def check_rate_limit(self, customer_id: str) -> bool:
        """
        Check if customer is within rate limit.

        Returns:
            True if allowed, False if rate limit exceeded
        """
        return self.rate_limiter.check_and_increment(customer_id)

    def process_turn(
        self,
        session: Session,
        customer_id: str,
        conversation_id: str,
        message_text: str,
    ) -> ChatTurn:
        """
        Process one customer message.

        Flow:
        1. Verify customer and conversation ownership
        2. Load context (recent messages, prior tickets)
        3. Store user message
        4. Run the escalation pipeline
        5. Store assistant response
        6. Create ticket when escalating
        7. Apply conversation update

        Args:
            session: Database session
            customer_id: Customer sending the message
            conversation_id: Existing conversation of that customer
            message_text: User message content

        Returns:
            ChatTurn with the pipeline outcome, applied patch and created ticket

        Raises:
            ValueError: If the customer or conversation does not exist, or the
                conversation belongs to another customer
            APIError / APITimeoutError: If reply generation fails
        """
        customer = get_customer_or_raise(session, customer_id)
        conversation = conversation_service.get_conversation_or_raise(session, conversation_id)
        if conversation.customer_id != customer_id:
            raise ValueError(
                f"Conversation {conversation_id} not found or not owned by customer"
            )

        # Context is read before the new message is stored so it is not repeated
        history = conversation_service.recent_messages(
            session, conversation_id, limit=settings.CHAT_HISTORY_LIMIT
        )
        previous_tickets = ticket_service.recent_tickets(
            session, customer_id, limit=settings.CHAT_TICKET_CONTEXT_LIMIT
        )

        user_msg = conversation_service.store_message(
            session, conversation_id, role=MessageRole.USER.value, content=message_text
        )

        outcome = self.pipeline.run(message_text, customer, history, previous_tickets)

        assistant_msg = conversation_service.store_message(
            session,
            conversation_id,
            role=MessageRole.ASSISTANT.value,
            content=outcome.reply,
            metadata={
                "model": outcome.model,
                "tokens": outcome.tokens,
                "sentiment": outcome.sentiment,
            },
            commit=False,
        )

        ticket = None
        if outcome.should_create_ticket:
            ticket = ticket_service.create_ticket(
                session,
                TicketCreate(
                    customer_id=customer_id,
                    conversation_id=conversation_id,
                    title=outcome.ticket_title,
                    description=message_text,
                    status=TicketStatus.OPEN,
                    priority=TicketPriority.MEDIUM,
                    category=TicketCategory(outcome.ticket_category),
                ),
                commit=False,
            )

        update = outcome.conversation_update()
        conversation_service.apply_conversation_update(session, conversation, update)

        session.commit()
        if ticket is not None:
            session.refresh(ticket)

        logger.info(
            f"Chat message processed: customer={customer_id}, conversation={conversation_id}, "
            f"message_id={user_msg.id}, response_id={assistant_msg.id}, "
            f"sentiment={outcome.sentiment}, escalated={outcome.should_create_ticket}"
        )

        return ChatTurn(outcome=outcome, conversation_update=update, ticket=ticket)
