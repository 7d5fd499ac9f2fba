"""Ticket routes for the agent dashboard and the customer's ticket list.

Provides:
- GET /api/tickets - Agent queue (filter, status, customer)
- POST /api/tickets - Manual ticket creation
- GET /api/tickets/{id} - Ticket details
- PATCH /api/tickets/{id} - Status / priority / assignment / resolution
- GET /api/customers/{customer_id}/tickets - Customer's own tickets
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from supportdesk.core.deps import get_db
from supportdesk.models.enums import TicketFilter, TicketStatus
from supportdesk.schemas.ticket import (
    TicketCreate,
    TicketRead,
    TicketUpdate,
    TicketWithCustomer,
)
from supportdesk.services import ticket_service
from supportdesk.services.ticket_service import TicketOwnershipError

router = APIRouter(prefix="/api", tags=["tickets"])


@router.get("/tickets", response_model=list[TicketWithCustomer])
def list_tickets(
    ticket_filter: TicketFilter = Query(default=TicketFilter.ALL, alias="filter"),
    status_filter: Optional[TicketStatus] = Query(default=None, alias="status"),
    customer_id: Optional[str] = None,
    session: Session = Depends(get_db),
) -> list[TicketWithCustomer]:
    """Agent queue, newest first."""
    return ticket_service.list_tickets(
        session, ticket_filter=ticket_filter, status=status_filter, customer_id=customer_id
    )


@router.post("/tickets", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
def create_ticket(
    request: TicketCreate,
    session: Session = Depends(get_db),
) -> TicketRead:
    """
    Create a ticket manually.

    Raises:
        HTTPException: 400 if the conversation belongs to another customer
        HTTPException: 404 if customer or conversation not found
    """
    try:
        ticket = ticket_service.create_ticket(session, request)
    except TicketOwnershipError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TicketRead.model_validate(ticket)


@router.get("/tickets/{ticket_id}", response_model=TicketRead)
def get_ticket(
    ticket_id: str,
    session: Session = Depends(get_db),
) -> TicketRead:
    try:
        ticket = ticket_service.get_ticket_or_raise(session, ticket_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TicketRead.model_validate(ticket)


@router.patch("/tickets/{ticket_id}", response_model=TicketRead)
def update_ticket(
    ticket_id: str,
    request: TicketUpdate,
    session: Session = Depends(get_db),
) -> TicketRead:
    try:
        ticket = ticket_service.update_ticket(session, ticket_id, request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TicketRead.model_validate(ticket)


@router.get("/customers/{customer_id}/tickets", response_model=list[TicketRead])
def list_customer_tickets(
    customer_id: str,
    session: Session = Depends(get_db),
) -> list[TicketRead]:
    rows = ticket_service.list_tickets(session, customer_id=customer_id)
    return [TicketRead.model_validate(row.model_dump(exclude={"customer"})) for row in rows]
