"""Customer profile operations."""
import logging
from typing import Optional

from sqlmodel import Session, col, select

from supportdesk.models.common import utcnow
from supportdesk.models.conversation import Conversation
from supportdesk.models.customer import Customer
from supportdesk.models.ticket import Ticket
from supportdesk.schemas.conversation import ConversationRead
from supportdesk.schemas.customer import CustomerPanel, CustomerRead, CustomerUpdate
from supportdesk.schemas.ticket import TicketRead

logger = logging.getLogger(__name__)


def get_customer_or_raise(session: Session, customer_id: str) -> Customer:
    """
    Raises:
        ValueError: If the customer does not exist
    """
    customer = session.get(Customer, customer_id)
    if not customer:
        raise ValueError(f"Customer {customer_id} not found")
    return customer


def get_or_create_customer(
    session: Session, user_id: str, email: str, name: Optional[str] = None
) -> Customer:
    """
    Return the customer profile for an authenticated user, creating it on
    first login.
    """
    statement = select(Customer).where(Customer.user_id == user_id)
    customer = session.exec(statement).first()
    if customer:
        return customer

    customer = Customer(user_id=user_id, email=email, name=name, preferences={})
    session.add(customer)
    session.commit()
    session.refresh(customer)

    logger.info(f"Customer profile created: customer={customer.id}, user={user_id}")
    return customer


def update_customer(session: Session, customer_id: str, data: CustomerUpdate) -> Customer:
    """
    Apply a profile edit.

    Raises:
        ValueError: If the customer does not exist
    """
    customer = get_customer_or_raise(session, customer_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    customer.updated_at = utcnow()

    session.add(customer)
    session.commit()
    session.refresh(customer)
    return customer


def get_customer_panel(session: Session, customer_id: str, limit: int = 5) -> CustomerPanel:
    """
    Profile plus the latest tickets and conversations, for the agent
    dashboard side panel.

    Raises:
        ValueError: If the customer does not exist
    """
    customer = get_customer_or_raise(session, customer_id)

    tickets = session.exec(
        select(Ticket)
        .where(Ticket.customer_id == customer_id)
        .order_by(col(Ticket.created_at).desc())
        .limit(limit)
    ).all()
    conversations = session.exec(
        select(Conversation)
        .where(Conversation.customer_id == customer_id)
        .order_by(col(Conversation.updated_at).desc())
        .limit(limit)
    ).all()

    return CustomerPanel(
        customer=CustomerRead.model_validate(customer),
        recent_tickets=[TicketRead.model_validate(t) for t in tickets],
        recent_conversations=[ConversationRead.model_validate(c) for c in conversations],
    )
