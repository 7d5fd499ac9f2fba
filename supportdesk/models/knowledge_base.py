"""Knowledge base entries consulted by agents."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from supportdesk.models.common import new_id, utcnow


class KnowledgeBaseEntry(SQLModel, table=True):
    __tablename__ = "knowledge_base"

    id: str = Field(default_factory=new_id, primary_key=True)
    title: str = Field(max_length=255)
    content: str = Field()
    category: Optional[str] = Field(default=None, max_length=50, index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
