"""Customer profile routes.

Provides:
- POST /api/customers - Get or create the profile for a signed-in user
- GET /api/customers/{id} - Profile
- PATCH /api/customers/{id} - Profile edit
- GET /api/customers/{id}/panel - Agent side panel (profile + recent activity)
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from supportdesk.core.deps import get_db
from supportdesk.schemas.customer import (
    CustomerLogin,
    CustomerPanel,
    CustomerRead,
    CustomerUpdate,
)
from supportdesk.services import customer_service

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("", response_model=CustomerRead)
def get_or_create_customer(
    request: CustomerLogin,
    session: Session = Depends(get_db),
) -> CustomerRead:
    customer = customer_service.get_or_create_customer(
        session, request.user_id, request.email, request.name
    )
    return CustomerRead.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(
    customer_id: str,
    session: Session = Depends(get_db),
) -> CustomerRead:
    try:
        customer = customer_service.get_customer_or_raise(session, customer_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CustomerRead.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerRead)
def update_customer(
    customer_id: str,
    request: CustomerUpdate,
    session: Session = Depends(get_db),
) -> CustomerRead:
    try:
        customer = customer_service.update_customer(session, customer_id, request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CustomerRead.model_validate(customer)


@router.get("/{customer_id}/panel", response_model=CustomerPanel)
def get_customer_panel(
    customer_id: str,
    session: Session = Depends(get_db),
) -> CustomerPanel:
    try:
        return customer_service.get_customer_panel(session, customer_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
