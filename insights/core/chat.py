import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .api import ApiClient, ApiError
from .models import ChatResponse

logger = logging.getLogger(__name__)

ERROR_TEMPLATE = "Sorry, I encountered an error: {error}. Please make sure the insights API is reachable."


@dataclass
class Message:
    role: str  # user|assistant
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    error: bool = False


class ChatSession:
    def __init__(self, client: ApiClient):
        self.client = client
        self.messages: List[Message] = []
        self.loading = False
        self.last_response: Optional[ChatResponse] = None

    async def send(self, text: str) -> Optional[Message]:
        """Ask a question; returns the assistant's reply, or None if nothing was sent."""
        if not text.strip() or self.loading:
            return None

        # the previous turn (if any) goes along as context
        context = self.messages[-1].content if self.messages else None
        self.messages.append(Message(role="user", content=text))
        self.loading = True
        try:
            resp = await self.client.chat_query(text, context=context)
        except ApiError as e:
            logger.error("Chat error: %s", e)
            reply = Message(role="assistant", content=ERROR_TEMPLATE.format(error=e), error=True)
        else:
            self.last_response = resp
            reply = Message(role="assistant", content=resp.answer)
        finally:
            self.loading = False

        self.messages.append(reply)
        return reply
