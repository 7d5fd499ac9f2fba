"""Counters for the agent and admin dashboards."""
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, col, select

from supportdesk.models.common import utcnow
from supportdesk.models.conversation import Conversation
from supportdesk.models.customer import Customer
from supportdesk.models.enums import TicketPriority, TicketStatus
from supportdesk.models.ticket import Ticket
from supportdesk.schemas.analytics import (
    AdminMetrics,
    AgentStats,
    ConversationMetrics,
    TicketMetrics,
    UserMetrics,
)

AVERAGE_WINDOW_DAYS = 30


def _count(session: Session, statement) -> int:
    return session.exec(statement).one() or 0


def _growth(current: int, previous: int) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def agent_stats(session: Session, now: Optional[datetime] = None) -> AgentStats:
    """Queue counters shown above the agent ticket list."""
    now = now or utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    count_tickets = select(func.count()).select_from(Ticket)

    return AgentStats(
        open=_count(session, count_tickets.where(Ticket.status == TicketStatus.OPEN.value)),
        in_progress=_count(
            session, count_tickets.where(Ticket.status == TicketStatus.IN_PROGRESS.value)
        ),
        resolved_today=_count(
            session,
            count_tickets.where(
                Ticket.status == TicketStatus.RESOLVED.value,
                col(Ticket.resolved_at) >= start_of_day,
            ),
        ),
        urgent=_count(session, count_tickets.where(Ticket.priority == TicketPriority.URGENT.value)),
    )


def admin_metrics(session: Session, now: Optional[datetime] = None) -> AdminMetrics:
    """
    User, conversation and ticket metrics for the admin dashboard.

    All day/month boundaries are in UTC.
    """
    now = now or utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_month = start_of_day.replace(day=1)
    start_of_last_month = (start_of_month - timedelta(days=1)).replace(day=1)

    # Users
    total_users = _count(session, select(func.count()).select_from(Customer))
    active_today = _count(
        session,
        select(func.count(func.distinct(Conversation.customer_id))).where(
            col(Conversation.updated_at) >= start_of_day
        ),
    )
    new_this_month = _count(
        session,
        select(func.count()).select_from(Customer).where(col(Customer.created_at) >= start_of_month),
    )
    new_last_month = _count(
        session,
        select(func.count())
        .select_from(Customer)
        .where(
            col(Customer.created_at) >= start_of_last_month,
            col(Customer.created_at) < start_of_month,
        ),
    )

    # Conversations
    total_conversations = _count(session, select(func.count()).select_from(Conversation))
    conversations_today = _count(
        session,
        select(func.count())
        .select_from(Conversation)
        .where(col(Conversation.created_at) >= start_of_day),
    )
    conversations_in_window = _count(
        session,
        select(func.count())
        .select_from(Conversation)
        .where(col(Conversation.created_at) >= now - timedelta(days=AVERAGE_WINDOW_DAYS)),
    )
    escalated_conversations = _count(
        session,
        select(func.count(func.distinct(Ticket.conversation_id))).where(
            col(Ticket.conversation_id).is_not(None)
        ),
    )
    if total_conversations:
        ai_resolution_rate = (
            (total_conversations - escalated_conversations) / total_conversations * 100
        )
    else:
        ai_resolution_rate = 0.0

    # Tickets
    total_tickets = _count(session, select(func.count()).select_from(Ticket))
    open_tickets = _count(
        session,
        select(func.count()).select_from(Ticket).where(Ticket.status == TicketStatus.OPEN.value),
    )
    resolved_today = _count(
        session,
        select(func.count()).select_from(Ticket).where(col(Ticket.resolved_at) >= start_of_day),
    )

    return AdminMetrics(
        users=UserMetrics(
            total=total_users,
            active_today=active_today,
            new_this_month=new_this_month,
            growth_rate=_growth(new_this_month, new_last_month),
        ),
        conversations=ConversationMetrics(
            total=total_conversations,
            today=conversations_today,
            avg_per_day=conversations_in_window / AVERAGE_WINDOW_DAYS,
            ai_resolution_rate=ai_resolution_rate,
        ),
        tickets=TicketMetrics(
            total=total_tickets,
            open=open_tickets,
            resolved_today=resolved_today,
        ),
    )
