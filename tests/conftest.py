"""
Shared pytest fixtures: in-memory database, stubbed OpenAI client and an API
client wired to both.
"""
import os
from types import SimpleNamespace

# Must be set before supportdesk.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["OPENAI_MAX_RETRIES"] = "3"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from supportdesk.core.deps import get_chat_service, get_db
from supportdesk.main import app
from supportdesk.models.conversation import Conversation
from supportdesk.models.customer import Customer
from supportdesk.services.chat_service import ChatService, RateLimiter
from supportdesk.services.escalation import EscalationPipeline

# Register tables on SQLModel.metadata
import supportdesk.models.knowledge_base  # noqa: F401
import supportdesk.models.ticket  # noqa: F401

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def openai_request() -> httpx.Request:
    return httpx.Request("POST", OPENAI_URL)


def make_completion(text, total_tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class FakeLLM:
    """
    Stand-in for the OpenAI client.

    Each pipeline step is answered from the matching attribute; an attribute
    holding an exception is raised instead.
    """

    def __init__(
        self,
        reply="Happy to help with that.",
        sentiment="neutral",
        escalate="false",
        title="Duplicate charge on invoice",
        category="billing",
    ):
        self.responses = {
            "reply": reply,
            "sentiment": sentiment,
            "escalate": escalate,
            "title": title,
            "category": category,
        }
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    @staticmethod
    def step_for(kwargs) -> str:
        system = kwargs["messages"][0]["content"]
        if system.startswith("You are a helpful customer service AI assistant"):
            return "reply"
        if system.startswith("Analyze the sentiment"):
            return "sentiment"
        if system.startswith("Determine if this customer interaction"):
            return "escalate"
        if system.startswith("Generate a concise, descriptive title"):
            return "title"
        if system.startswith("Categorize this customer message"):
            return "category"
        raise AssertionError(f"Unexpected prompt: {system[:60]}")

    def calls_for(self, step):
        return [kwargs for kwargs in self.calls if self.step_for(kwargs) == step]

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.responses[self.step_for(kwargs)]
        if isinstance(result, BaseException):
            raise result
        return make_completion(result)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def chat_service(fake_llm):
    return ChatService(
        pipeline=EscalationPipeline(client=fake_llm),
        rate_limiter=RateLimiter(max_requests_per_minute=100),
    )


@pytest.fixture
def client(engine, chat_service):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_service] = lambda: chat_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def customer(session):
    customer = Customer(
        user_id="auth-u1",
        email="jane@example.com",
        name="Jane Doe",
        company="Acme",
        preferences={"language": "en"},
    )
    session.add(customer)
    session.commit()
    session.refresh(customer)
    return customer


@pytest.fixture
def conversation(session, customer):
    conversation = Conversation(customer_id=customer.id)
    session.add(conversation)
    session.commit()
    session.refresh(conversation)
    return conversation


@pytest.fixture
def other_customer(session):
    customer = Customer(user_id="auth-u2", email="bob@example.com", name="Bob")
    session.add(customer)
    session.commit()
    session.refresh(customer)
    return customer
