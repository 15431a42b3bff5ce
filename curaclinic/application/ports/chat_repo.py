from dataclasses import dataclass
from typing import List, Protocol
from datetime import datetime


@dataclass
class ChatRecord:
    id: int
    user_id: str
    role: str
    content: str
    created_at: datetime


class ChatRepository(Protocol):
    def add(self, user_id: str, role: str, content: str) -> ChatRecord:
        ...

    def recent_for_user(self, user_id: str, limit: int) -> List[ChatRecord]:
        """Most recent messages, returned oldest first."""
        ...
