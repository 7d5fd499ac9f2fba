"""Customer SQLModel definition.

A customer row is created the first time an authenticated user opens the
chat, and mutated by profile edits afterwards. Customers are never deleted.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from supportdesk.models.common import new_id, utcnow


class Customer(SQLModel, table=True):
    """End-user profile, linked to an identity from the auth provider."""
    __tablename__ = "customers"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, unique=True, nullable=False)
    email: str = Field(max_length=255, nullable=False)
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    preferences: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
