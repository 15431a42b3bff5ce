# curaclinic/db/models/health/report.py
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utc_now

class BloodReport(SQLModel, table=True):
    __tablename__ = "blood_reports"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    file_name: str
    content: Optional[str] = None
    file_url: Optional[str] = None
    analysis: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
