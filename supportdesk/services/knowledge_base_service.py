"""Knowledge base lookup and authoring."""
from typing import List, Optional

from sqlalchemy import or_
from sqlmodel import Session, col, select

from supportdesk.models.knowledge_base import KnowledgeBaseEntry
from supportdesk.schemas.knowledge_base import KnowledgeBaseCreate


def list_entries(
    session: Session,
    category: Optional[str] = None,
    query: Optional[str] = None,
) -> List[KnowledgeBaseEntry]:
    """
    List entries, optionally filtered by category and by a case-insensitive
    substring match on title or content.
    """
    statement = select(KnowledgeBaseEntry)

    if category:
        statement = statement.where(KnowledgeBaseEntry.category == category)
    if query:
        pattern = f"%{query.strip()}%"
        statement = statement.where(
            or_(
                col(KnowledgeBaseEntry.title).ilike(pattern),
                col(KnowledgeBaseEntry.content).ilike(pattern),
            )
        )

    statement = statement.order_by(col(KnowledgeBaseEntry.updated_at).desc())
    return list(session.exec(statement).all())


def create_entry(session: Session, data: KnowledgeBaseCreate) -> KnowledgeBaseEntry:
    entry = KnowledgeBaseEntry(
        title=data.title,
        content=data.content,
        category=data.category,
        tags=list(data.tags),
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry
