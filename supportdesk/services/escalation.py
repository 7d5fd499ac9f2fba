"""Escalation decision pipeline for chat turns.

Given a customer message and its context, the pipeline:
1. Generates the assistant reply (critical path, errors propagate)
2. Classifies sentiment (advisory, falls back to "neutral")
3. Decides whether to escalate to a ticket (advisory, falls back to False)
4. Generates a ticket title (advisory, only when escalating)
5. Categorizes the issue (advisory, only when escalating)

The pipeline only computes values; ChatService persists them.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import json
import logging
import time

from openai import OpenAI, APITimeoutError

from supportdesk.config import settings
from supportdesk.models.common import utcnow
from supportdesk.models.conversation import Message
from supportdesk.models.customer import Customer
from supportdesk.models.enums import ConversationStatus, Sentiment, TicketCategory
from supportdesk.models.ticket import Ticket

logger = logging.getLogger(__name__)

DEFAULT_REPLY = "I'm sorry, I couldn't process your request right now. Please try again."
DEFAULT_TICKET_TITLE = "Customer Support Request"
MAX_TITLE_LENGTH = 50

SENTIMENT_PROMPT = (
    "Analyze the sentiment of the following message. "
    "Respond with only one word: positive, negative, or neutral."
)

ESCALATION_PROMPT = """Determine if this customer interaction should be escalated to create a support ticket.

Create a ticket if:
- The customer has a complex technical issue
- The customer is requesting a refund or billing change
- The customer is reporting a bug or system problem
- The customer seems frustrated or unsatisfied
- The AI couldn't fully resolve the issue

Don't create a ticket for:
- Simple questions that were answered
- General information requests
- Casual conversation

Respond with only "true" or "false"."""

TITLE_PROMPT = (
    "Generate a concise, descriptive title for a support ticket based on the "
    f"customer message. Maximum {MAX_TITLE_LENGTH} characters."
)

CATEGORY_PROMPT = (
    "Categorize this customer message into one of these categories:\n"
    + "\n".join(f"- {category.value}" for category in TicketCategory)
    + "\n\nRespond with only the category name."
)

_SENTIMENTS = {s.value for s in Sentiment}
_CATEGORIES = {c.value for c in TicketCategory}


@dataclass
class EscalationOutcome:
    """Everything one chat turn decided."""
    reply: str
    model: str
    tokens: Optional[int]
    sentiment: str
    should_create_ticket: bool
    ticket_title: Optional[str] = None
    ticket_category: Optional[str] = None

    def conversation_update(self) -> Dict[str, Any]:
        """Patch to apply to the conversation row."""
        update: Dict[str, Any] = {
            "updated_at": utcnow().isoformat(),
            "sentiment": self.sentiment,
        }
        if self.should_create_ticket:
            update["status"] = ConversationStatus.ESCALATED.value
        return update


class EscalationPipeline:
    """Runs the reply + classification calls against the OpenAI API."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        classifier_model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.classifier_model = classifier_model or settings.OPENAI_CLASSIFIER_MODEL
        self.timeout = timeout if timeout is not None else settings.OPENAI_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.OPENAI_MAX_RETRIES

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            # Retries are handled here, not inside the SDK
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY, max_retries=0)
        return self._client

    def run(
        self,
        message: str,
        customer: Optional[Customer],
        history: Sequence[Message],
        previous_tickets: Sequence[Ticket],
    ) -> EscalationOutcome:
        """
        Produce the reply and the escalation decision for one user message.

        Raises:
            APIError: If reply generation fails (not guarded)
            APITimeoutError: If reply generation times out after retries
        """
        reply, tokens = self.generate_reply(message, customer, history, previous_tickets)

        # Classifications are independent once the reply is known
        with ThreadPoolExecutor(max_workers=2) as pool:
            sentiment_future = pool.submit(self.analyze_sentiment, message)
            escalate_future = pool.submit(self.should_escalate, message, reply)
            sentiment = sentiment_future.result()
            should_create_ticket = escalate_future.result()

            title = category = None
            if should_create_ticket:
                title_future = pool.submit(self.generate_ticket_title, message)
                category_future = pool.submit(self.categorize_issue, message)
                title = title_future.result()
                category = category_future.result()

        return EscalationOutcome(
            reply=reply,
            model=self.model,
            tokens=tokens,
            sentiment=sentiment,
            should_create_ticket=should_create_ticket,
            ticket_title=title,
            ticket_category=category,
        )

    def generate_reply(
        self,
        message: str,
        customer: Optional[Customer],
        history: Sequence[Message],
        previous_tickets: Sequence[Ticket],
    ) -> tuple[str, Optional[int]]:
        """Return (reply text, total tokens used)."""
        messages = [
            {"role": "system", "content": self._build_system_prompt(customer, previous_tickets)},
            *self._build_message_history(history, message),
        ]

        response = self._call_with_retry(
            model=self.model,
            messages=messages,
            max_tokens=500,
            temperature=0.7,
        )

        content = response.choices[0].message.content if response.choices else None
        usage = getattr(response, "usage", None)
        tokens = getattr(usage, "total_tokens", None) if usage else None
        return content or DEFAULT_REPLY, tokens

    def analyze_sentiment(self, message: str) -> str:
        result = self._classify(SENTIMENT_PROMPT, message, max_tokens=10, temperature=0)
        if result is None:
            return Sentiment.NEUTRAL.value

        result = result.lower().strip()
        if result not in _SENTIMENTS:
            logger.warning(f"Unrecognized sentiment label {result!r}, using neutral")
            return Sentiment.NEUTRAL.value
        return result

    def should_escalate(self, message: str, reply: str) -> bool:
        content = f'Customer message: "{message}"\nAI response: "{reply}"'
        result = self._classify(ESCALATION_PROMPT, content, max_tokens=10, temperature=0)
        return result is not None and result.lower().strip() == "true"

    def generate_ticket_title(self, message: str) -> str:
        result = self._classify(TITLE_PROMPT, message, max_tokens=20, temperature=0.3)
        title = (result or "").strip()
        if not title:
            return DEFAULT_TICKET_TITLE
        return title[:MAX_TITLE_LENGTH]

    def categorize_issue(self, message: str) -> str:
        result = self._classify(CATEGORY_PROMPT, message, max_tokens=10, temperature=0)
        category = (result or "").lower().strip()
        if category not in _CATEGORIES:
            if result is not None:
                logger.warning(f"Unrecognized category {category!r}, using general")
            return TicketCategory.GENERAL.value
        return category

    def _classify(
        self, instruction: str, content: str, max_tokens: int, temperature: float
    ) -> Optional[str]:
        """
        Single advisory completion.

        Returns:
            Response text, or None if the call failed for any reason
        """
        try:
            response = self.client.chat.completions.create(
                model=self.classifier_model,
                messages=[
                    {"role": "system", "content": instruction},
                    {"role": "user", "content": content},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=self.timeout,
            )
            return response.choices[0].message.content
        except Exception as e:
            logger.warning(f"Advisory classification failed, using default: {str(e)}")
            return None

    def _call_with_retry(self, **kwargs: Any) -> Any:
        """Create a completion, retrying timeouts with exponential backoff."""
        retry_count = 0

        while True:
            try:
                return self.client.chat.completions.create(timeout=self.timeout, **kwargs)
            except APITimeoutError:
                retry_count += 1
                if retry_count >= self.max_retries:
                    raise
                wait_time = 2 ** retry_count
                logger.warning(
                    f"OpenAI timeout, retry {retry_count}/{self.max_retries} after {wait_time}s"
                )
                time.sleep(wait_time)

    def _build_system_prompt(
        self, customer: Optional[Customer], previous_tickets: Sequence[Ticket]
    ) -> str:
        """System prompt embedding the customer profile and ticket history."""
        name = (customer.name if customer else None) or "Not provided"
        email = customer.email if customer else "Not provided"
        company = (customer.company if customer else None) or "Not provided"
        preferences = json.dumps((customer.preferences if customer else None) or {})

        if previous_tickets:
            ticket_history = "\n".join(
                f"- {ticket.title} ({ticket.status}): {ticket.description or 'No description'}"
                for ticket in previous_tickets
            )
        else:
            ticket_history = "No previous tickets"

        return f"""You are a helpful customer service AI assistant. Here's what you know about this customer:

Customer Information:
- Name: {name}
- Email: {email}
- Company: {company}
- Preferences: {preferences}

Previous Support History:
{ticket_history}

Guidelines:
1. Be helpful, friendly, and professional
2. Use the customer's name when appropriate
3. Reference their previous issues if relevant
4. If you cannot resolve an issue, offer to create a support ticket
5. Be concise but thorough in your responses
6. If the customer seems frustrated or has a complex issue, suggest escalating to human support

Conversation context: This is an ongoing conversation, refer to previous messages for context."""

    def _build_message_history(
        self, history: Sequence[Message], new_message: str
    ) -> List[Dict[str, str]]:
        """Convert stored messages (oldest first) to OpenAI format and append the new one."""
        messages = [{"role": msg.role, "content": msg.content} for msg in history]
        messages.append({"role": "user", "content": new_message})
        return messages
