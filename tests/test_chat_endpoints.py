"""
Tests for the chat endpoint and conversation routes.

The OpenAI client is replaced by FakeLLM; the database is in-memory SQLite.
"""
import pytest
from openai import APIConnectionError
from sqlmodel import select

from supportdesk.models.conversation import Conversation, Message
from supportdesk.models.customer import Customer
from supportdesk.models.ticket import Ticket
from supportdesk.services.chat_service import RateLimiter

from conftest import openai_request


def chat(client, message, conversation_id, customer_id):
    return client.post(
        "/api/chat",
        json={"message": message, "conversationId": conversation_id, "customerId": customer_id},
    )


@pytest.fixture
def u1_c1(session):
    """Customer "u1" with conversation "c1"."""
    session.add(Customer(id="u1", user_id="auth-u1", email="jane@example.com", name="Jane"))
    session.commit()
    session.add(Conversation(id="c1", customer_id="u1"))
    session.commit()


# ==================== End-to-end scenarios ====================

def test_scenario_a_escalates_to_billing_ticket(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(escalate="true", category="billing", sentiment="negative")

    response = chat(client, "Why was I charged twice?", "c1", "u1")

    assert response.status_code == 200
    data = response.json()
    assert data["response"]
    assert data["ticketCreated"]["category"] == "billing"
    assert data["ticketCreated"]["status"] == "open"
    assert data["ticketCreated"]["priority"] == "medium"
    assert data["ticketCreated"]["description"] == "Why was I charged twice?"
    assert data["ticketCreated"]["conversation_id"] == "c1"
    assert data["ticketCreated"]["customer_id"] == "u1"
    assert data["conversationUpdate"]["status"] == "escalated"
    assert data["conversationUpdate"]["sentiment"] == "negative"
    assert data["metadata"] == {
        "sentiment": "negative",
        "shouldCreateTicket": True,
        "model": "gpt-4",
        "tokens": 42,
    }

    session.expire_all()
    assert session.get(Conversation, "c1").status == "escalated"
    tickets = session.exec(select(Ticket)).all()
    assert len(tickets) == 1
    assert tickets[0].title == "Duplicate charge on invoice"


def test_scenario_b_no_escalation(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(escalate="false", sentiment="positive")

    response = chat(client, "What are your opening hours?", "c1", "u1")

    assert response.status_code == 200
    data = response.json()
    assert data["ticketCreated"] is None
    assert "status" not in data["conversationUpdate"]
    assert data["metadata"]["shouldCreateTicket"] is False

    session.expire_all()
    conversation = session.get(Conversation, "c1")
    assert conversation.status == "active"
    assert conversation.sentiment == "positive"
    assert session.exec(select(Ticket)).all() == []


def test_unrecognized_escalation_answer_creates_no_ticket(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(escalate="maybe")

    data = chat(client, "Hmm", "c1", "u1").json()

    assert data["ticketCreated"] is None
    session.expire_all()
    assert session.get(Conversation, "c1").status == "active"


def test_title_and_category_failures_use_defaults(client, fake_llm, u1_c1):
    error = APIConnectionError(request=openai_request())
    fake_llm.responses.update(escalate="true", title=error, category=error)

    data = chat(client, "Everything is broken", "c1", "u1").json()

    assert data["ticketCreated"]["title"] == "Customer Support Request"
    assert data["ticketCreated"]["category"] == "general"


def test_sentiment_failure_reports_neutral(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(sentiment=APIConnectionError(request=openai_request()))

    data = chat(client, "Hello", "c1", "u1").json()

    assert data["metadata"]["sentiment"] == "neutral"
    assert data["conversationUpdate"]["sentiment"] == "neutral"


# ==================== Persistence ====================

def test_messages_are_stored_in_order_with_metadata(client, session, u1_c1):
    chat(client, "Hello", "c1", "u1")

    messages = session.exec(
        select(Message).where(Message.conversation_id == "c1").order_by(Message.created_at)
    ).all()
    assert [(m.role, m.content) for m in messages] == [
        ("user", "Hello"),
        ("assistant", "Happy to help with that."),
    ]
    assert messages[1].msg_metadata == {"model": "gpt-4", "tokens": 42, "sentiment": "neutral"}


def test_same_message_twice_creates_two_turns(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(escalate="true")

    first = chat(client, "Refund please", "c1", "u1").json()
    second = chat(client, "Refund please", "c1", "u1").json()

    assert first["ticketCreated"]["id"] != second["ticketCreated"]["id"]
    assert len(session.exec(select(Message)).all()) == 4
    assert len(session.exec(select(Ticket)).all()) == 2


def test_previous_turns_are_sent_as_history(client, fake_llm, u1_c1):
    chat(client, "First question", "c1", "u1")
    chat(client, "Second question", "c1", "u1")

    messages = fake_llm.calls_for("reply")[1]["messages"]
    assert messages[1:] == [
        {"role": "user", "content": "First question"},
        {"role": "assistant", "content": "Happy to help with that."},
        {"role": "user", "content": "Second question"},
    ]


def test_history_is_limited_to_last_ten_messages(client, session, fake_llm, u1_c1):
    for i in range(12):
        session.add(Message(conversation_id="c1", role="user", content=f"old {i}"))
        session.commit()

    chat(client, "New", "c1", "u1")

    messages = fake_llm.calls_for("reply")[0]["messages"]
    history = messages[1:-1]
    assert len(history) == 10
    assert history[0]["content"] == "old 2"
    assert history[-1]["content"] == "old 11"


def test_previous_tickets_are_in_system_prompt(client, session, fake_llm, u1_c1):
    session.add(Ticket(customer_id="u1", title="Login broken", status="resolved"))
    session.commit()

    chat(client, "Hi again", "c1", "u1")

    system = fake_llm.calls_for("reply")[0]["messages"][0]["content"]
    assert "- Login broken (resolved): No description" in system


# ==================== Errors ====================

@pytest.mark.parametrize("body", [
    {"conversationId": "c1", "customerId": "u1"},
    {"message": "Hi", "customerId": "u1"},
    {"message": "Hi", "conversationId": "c1"},
    {"message": "   ", "conversationId": "c1", "customerId": "u1"},
    {},
])
def test_missing_fields_return_400(client, session, body, u1_c1):
    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing required fields"}
    assert session.exec(select(Message)).all() == []


def test_unknown_conversation_returns_404(client, u1_c1):
    response = chat(client, "Hello", "nope", "u1")
    assert response.status_code == 404


def test_conversation_of_other_customer_returns_404(client, session, u1_c1, other_customer):
    response = chat(client, "Hello", "c1", other_customer.id)

    assert response.status_code == 404
    assert session.exec(select(Message)).all() == []


def test_reply_failure_returns_generic_500(client, session, fake_llm, u1_c1):
    fake_llm.responses.update(reply=APIConnectionError(request=openai_request()))

    response = chat(client, "Hello", "c1", "u1")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert fake_llm.calls_for("sentiment") == []
    # The user message was stored before generation started
    messages = session.exec(select(Message)).all()
    assert [m.role for m in messages] == ["user"]
    assert session.exec(select(Ticket)).all() == []


def test_rate_limit_returns_429(client, chat_service, u1_c1):
    chat_service.rate_limiter = RateLimiter(max_requests_per_minute=1)

    assert chat(client, "One", "c1", "u1").status_code == 200
    response = chat(client, "Two", "c1", "u1")

    assert response.status_code == 429


# ==================== Conversations ====================

def test_start_conversation_reuses_active(client, customer):
    first = client.post("/api/conversations", json={"customer_id": customer.id})
    second = client.post("/api/conversations", json={"customer_id": customer.id})

    assert first.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["status"] == "active"
    assert first.json()["sentiment"] == "neutral"


def test_start_conversation_after_escalation_creates_new(client, session, customer, conversation):
    conversation.status = "escalated"
    session.add(conversation)
    session.commit()

    response = client.post("/api/conversations", json={"customer_id": customer.id})

    assert response.json()["id"] != conversation.id


def test_start_conversation_unknown_customer(client):
    response = client.post("/api/conversations", json={"customer_id": "ghost"})
    assert response.status_code == 404


def test_get_conversation_with_messages(client, u1_c1):
    chat(client, "Hello", "c1", "u1")

    response = client.get("/api/conversations/c1")

    assert response.status_code == 200
    data = response.json()
    assert data["customer_id"] == "u1"
    assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
    assert data["messages"][1]["metadata"]["model"] == "gpt-4"


def test_get_unknown_conversation(client):
    assert client.get("/api/conversations/missing").status_code == 404


def test_list_customer_conversations(client, u1_c1):
    response = client.get("/api/customers/u1/conversations")

    assert response.status_code == 200
    assert [c["id"] for c in response.json()] == ["c1"]


# ==================== Rate limiter ====================

def test_rate_limiter_resets_each_minute():
    from datetime import datetime

    limiter = RateLimiter(max_requests_per_minute=2)
    t0 = datetime(2025, 1, 1, 12, 0, 5)

    assert limiter.check_and_increment("u1", now=t0)
    assert limiter.check_and_increment("u1", now=t0)
    assert not limiter.check_and_increment("u1", now=t0)
    assert limiter.check_and_increment("u2", now=t0)
    assert limiter.check_and_increment("u1", now=datetime(2025, 1, 1, 12, 1, 0))


def test_rate_limiter_drops_counts_from_previous_minutes():
    from datetime import datetime

    limiter = RateLimiter(max_requests_per_minute=1)
    for i in range(50):
        limiter.check_and_increment(f"customer-{i}", now=datetime(2025, 1, 1, 12, 0, 5))
    assert limiter.tracked_keys == 50

    assert limiter.check_and_increment("customer-0", now=datetime(2025, 1, 1, 12, 1, 0))
    assert limiter.tracked_keys == 1
