from dataclasses import dataclass, field
from typing import List, Optional, Union
from datetime import datetime
from fastapi import HTTPException
import logging
import uuid

from ..ports.ai_provider import AIProvider
from ..ports.chat_repo import ChatRepository, ChatRecord
from ...utils import utc_now

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = """You are Curax, a friendly and knowledgeable medical AI assistant for CuraClinic. Your role is to:
- Provide general health information and wellness advice
- Explain medical terms in simple language
- Suggest lifestyle and dietary recommendations
- Help users understand symptoms (without diagnosing)
- Encourage users to consult healthcare professionals for medical concerns

IMPORTANT: You are NOT a doctor. Always remind users that your advice is general information only and they should consult qualified healthcare providers for medical decisions. Never diagnose conditions or prescribe treatments.

Be warm, empathetic, and supportive. Keep responses concise but helpful."""

REPORT_SYSTEM_PROMPT = """You are a medical report analyst assistant. Analyze blood test results and provide:
1. Summary of key findings
2. Values that appear outside normal ranges
3. General dietary recommendations
4. Lifestyle suggestions

IMPORTANT: This is NOT medical advice. Always recommend consulting a healthcare provider. Do not diagnose conditions. Keep response under 300 words."""


@dataclass
class PendingMessage:
    """Shown to the user but not (yet) persisted."""
    role: str
    content: str
    client_ref: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class StoredMessage:
    id: int
    role: str
    content: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: ChatRecord) -> "StoredMessage":
        return cls(id=record.id, role=record.role, content=record.content, created_at=record.created_at)


TranscriptEntry = Union[PendingMessage, StoredMessage]


@dataclass
class AssistantService:
    ai_provider: AIProvider
    chat_repo: Optional[ChatRepository] = None
    history_limit: int = 50

    def _ask(self, system_prompt: str, text: str) -> str:
        try:
            return self.ai_provider.complete(system_prompt, text)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Assistant gateway error: {e}")
            raise HTTPException(status_code=502, detail=str(e) or "Assistant gateway error")

    def chat(self, message: str) -> str:
        if not message or not message.strip():
            raise HTTPException(status_code=400, detail="Message must not be empty")
        return self._ask(CHAT_SYSTEM_PROMPT, message.strip())

    def analyze_report(self, content: str) -> str:
        if not content or not content.strip():
            raise HTTPException(status_code=400, detail="Report content must not be empty")
        return self._ask(REPORT_SYSTEM_PROMPT, f"Analyze this blood report:\n\n{content}")

    def history(self, user_id: str) -> List[StoredMessage]:
        return [StoredMessage.from_record(r) for r in self.chat_repo.recent_for_user(user_id, self.history_limit)]

    def _persist(self, user_id: str, entry: PendingMessage) -> TranscriptEntry:
        try:
            return StoredMessage.from_record(self.chat_repo.add(user_id, entry.role, entry.content))
        except Exception as e:
            logger.error(f"Saving {entry.role} message failed for {user_id}: {e}")
            return entry

    def converse(self, user_id: str, message: str) -> List[TranscriptEntry]:
        """Send one message and record both sides of the exchange.

        The user's message is recorded before the gateway is called, so it is
        kept even when the assistant fails to answer.
        """
        if not message or not message.strip():
            raise HTTPException(status_code=400, detail="Message must not be empty")
        text = message.strip()
        sent = self._persist(user_id, PendingMessage(role="user", content=text))
        reply = self.chat(text)
        answered = self._persist(user_id, PendingMessage(role="assistant", content=reply))
        return [sent, answered]
