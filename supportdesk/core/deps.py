"""FastAPI dependencies."""
from typing import Generator

from sqlmodel import Session

from supportdesk.database import get_session
from supportdesk.services.chat_service import ChatService

# Global chat service instance (stateless apart from the rate limiter)
_chat_service = ChatService()


def get_db() -> Generator[Session, None, None]:
    """Database session dependency."""
    yield from get_session()


def get_chat_service() -> ChatService:
    return _chat_service
