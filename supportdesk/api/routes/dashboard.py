"""Agent and admin dashboard counters, plus the knowledge base."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from supportdesk.core.deps import get_db
from supportdesk.schemas.analytics import AdminMetrics, AgentStats
from supportdesk.schemas.knowledge_base import KnowledgeBaseCreate, KnowledgeBaseRead
from supportdesk.services import analytics_service, knowledge_base_service

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/agent/stats", response_model=AgentStats)
def get_agent_stats(session: Session = Depends(get_db)) -> AgentStats:
    return analytics_service.agent_stats(session)


@router.get("/admin/metrics", response_model=AdminMetrics)
def get_admin_metrics(session: Session = Depends(get_db)) -> AdminMetrics:
    return analytics_service.admin_metrics(session)


@router.get("/knowledge-base", response_model=list[KnowledgeBaseRead])
def list_knowledge_base(
    category: Optional[str] = None,
    q: Optional[str] = None,
    session: Session = Depends(get_db),
) -> list[KnowledgeBaseRead]:
    entries = knowledge_base_service.list_entries(session, category=category, query=q)
    return [KnowledgeBaseRead.model_validate(e) for e in entries]


@router.post(
    "/knowledge-base",
    response_model=KnowledgeBaseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_knowledge_base_entry(
    request: KnowledgeBaseCreate,
    session: Session = Depends(get_db),
) -> KnowledgeBaseRead:
    entry = knowledge_base_service.create_entry(session, request)
    return KnowledgeBaseRead.model_validate(entry)
