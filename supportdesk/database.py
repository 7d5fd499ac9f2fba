"""Database engine and session management."""
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from supportdesk.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite connections are shared across FastAPI's worker threads
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args=connect_args,
)


def init_db() -> None:
    """Create all tables registered on SQLModel.metadata."""
    # Import models so their tables are registered before create_all
    from supportdesk.models import customer, conversation, ticket, knowledge_base  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """Yield a database session for one request."""
    with Session(engine) as session:
        yield session
