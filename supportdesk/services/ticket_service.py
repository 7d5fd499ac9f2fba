"""Ticket service layer.

Handles:
- Agent queue listing with filters
- Manual ticket creation (agents) and automated creation (escalation)
- Status / priority / assignment / resolution updates
"""
from typing import List, Optional
import logging

from sqlmodel import Session, col, select

from supportdesk.models.common import utcnow
from supportdesk.models.conversation import Conversation
from supportdesk.models.customer import Customer
from supportdesk.models.enums import TicketFilter, TicketPriority, TicketStatus
from supportdesk.models.ticket import Ticket
from supportdesk.schemas.ticket import (
    CustomerSummary,
    TicketCreate,
    TicketUpdate,
    TicketWithCustomer,
)
from supportdesk.services.customer_service import get_customer_or_raise

logger = logging.getLogger(__name__)


class TicketOwnershipError(ValueError):
    """Ticket and its conversation belong to different customers."""


def list_tickets(
    session: Session,
    ticket_filter: TicketFilter = TicketFilter.ALL,
    status: Optional[TicketStatus] = None,
    customer_id: Optional[str] = None,
) -> List[TicketWithCustomer]:
    """
    List tickets newest first, each joined with its customer summary.

    Args:
        ticket_filter: Queue tab (all / urgent / assigned / unassigned)
        status: Optional status filter
        customer_id: Optional customer filter
    """
    statement = select(Ticket, Customer).join(Customer, Ticket.customer_id == Customer.id)

    if ticket_filter == TicketFilter.URGENT:
        statement = statement.where(Ticket.priority == TicketPriority.URGENT.value)
    elif ticket_filter == TicketFilter.ASSIGNED:
        statement = statement.where(col(Ticket.assigned_to).is_not(None))
    elif ticket_filter == TicketFilter.UNASSIGNED:
        statement = statement.where(col(Ticket.assigned_to).is_(None))

    if status is not None:
        statement = statement.where(Ticket.status == status.value)
    if customer_id is not None:
        statement = statement.where(Ticket.customer_id == customer_id)

    statement = statement.order_by(col(Ticket.created_at).desc())

    rows = []
    for ticket, customer in session.exec(statement).all():
        row = TicketWithCustomer.model_validate(ticket)
        row.customer = CustomerSummary.model_validate(customer)
        rows.append(row)
    return rows


def recent_tickets(session: Session, customer_id: str, limit: int = 5) -> List[Ticket]:
    statement = (
        select(Ticket)
        .where(Ticket.customer_id == customer_id)
        .order_by(col(Ticket.created_at).desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def get_ticket_or_raise(session: Session, ticket_id: str) -> Ticket:
    """
    Raises:
        ValueError: If the ticket does not exist
    """
    ticket = session.get(Ticket, ticket_id)
    if not ticket:
        raise ValueError(f"Ticket {ticket_id} not found")
    return ticket


def create_ticket(session: Session, data: TicketCreate, commit: bool = True) -> Ticket:
    """
    Create a ticket.

    Raises:
        ValueError: If the customer or conversation does not exist
        TicketOwnershipError: If the conversation belongs to another customer
    """
    get_customer_or_raise(session, data.customer_id)

    if data.conversation_id is not None:
        conversation = session.get(Conversation, data.conversation_id)
        if not conversation:
            raise ValueError(f"Conversation {data.conversation_id} not found")
        if conversation.customer_id != data.customer_id:
            raise TicketOwnershipError(
                f"Conversation {data.conversation_id} does not belong to customer {data.customer_id}"
            )

    ticket = Ticket(
        conversation_id=data.conversation_id,
        customer_id=data.customer_id,
        title=data.title,
        description=data.description,
        status=data.status.value,
        priority=data.priority.value,
        category=data.category.value if data.category else None,
        assigned_to=data.assigned_to,
    )
    if data.status == TicketStatus.RESOLVED:
        ticket.resolved_at = ticket.created_at

    session.add(ticket)
    if commit:
        session.commit()
        session.refresh(ticket)

    logger.info(
        f"Ticket created: ticket={ticket.id}, customer={ticket.customer_id}, "
        f"conversation={ticket.conversation_id}, category={ticket.category}"
    )
    return ticket


def update_ticket(session: Session, ticket_id: str, data: TicketUpdate) -> Ticket:
    """
    Apply an agent's partial update.

    Moving a ticket to "resolved" stamps resolved_at.

    Raises:
        ValueError: If the ticket does not exist
    """
    ticket = get_ticket_or_raise(session, ticket_id)
    now = utcnow()

    for field, value in data.model_dump(exclude_unset=True, mode="json").items():
        setattr(ticket, field, value)

    if data.status == TicketStatus.RESOLVED and ticket.resolved_at is None:
        ticket.resolved_at = now
    ticket.updated_at = now

    session.add(ticket)
    session.commit()
    session.refresh(ticket)

    logger.info(f"Ticket updated: ticket={ticket.id}, fields={sorted(data.model_fields_set)}")
    return ticket
