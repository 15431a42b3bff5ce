# curaclinic/db/models/health/chat.py
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utc_now

class ChatMessage(SQLModel, table=True):
    __tablename__ = "chat_messages"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    role: str  # user | assistant
    content: str
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
