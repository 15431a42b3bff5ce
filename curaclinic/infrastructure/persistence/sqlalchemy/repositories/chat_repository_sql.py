from typing import List
from sqlmodel import Session, select

from .....db.models import ChatMessage
from .....application.ports.chat_repo import ChatRepository, ChatRecord


class SqlChatRepository(ChatRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, m: ChatMessage) -> ChatRecord:
        return ChatRecord(id=m.id, user_id=m.user_id, role=m.role, content=m.content, created_at=m.created_at)

    def add(self, user_id: str, role: str, content: str) -> ChatRecord:
        m = ChatMessage(user_id=user_id, role=role, content=content)
        self.session.add(m)
        self.session.commit()
        self.session.refresh(m)
        return self._to_record(m)

    def recent_for_user(self, user_id: str, limit: int) -> List[ChatRecord]:
        rows = self.session.exec(
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        ).all()
        return [self._to_record(m) for m in reversed(rows)]
