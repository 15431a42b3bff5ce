# curaclinic/schemas/reports/report.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    content: Optional[str] = None
    file_url: Optional[str] = None
    analysis: Optional[str] = None
    uploaded_at: datetime
