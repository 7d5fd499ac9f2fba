"""Dashboard metric schemas."""
from pydantic import BaseModel


class AgentStats(BaseModel):
    open: int
    in_progress: int
    resolved_today: int
    urgent: int


class UserMetrics(BaseModel):
    total: int
    active_today: int
    new_this_month: int
    growth_rate: float


class ConversationMetrics(BaseModel):
    total: int
    today: int
    avg_per_day: float
    ai_resolution_rate: float


class TicketMetrics(BaseModel):
    total: int
    open: int
    resolved_today: int


class AdminMetrics(BaseModel):
    users: UserMetrics
    conversations: ConversationMetrics
    tickets: TicketMetrics
