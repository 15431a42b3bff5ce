from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime


@dataclass
class ReportRecord:
    id: int
    user_id: str
    file_name: str
    content: Optional[str]
    file_url: Optional[str]
    analysis: Optional[str]
    uploaded_at: datetime


class ReportRepository(Protocol):
    def create(self, user_id: str, file_name: str, file_url: Optional[str], content: Optional[str]) -> ReportRecord:
        ...

    def list_for_user(self, user_id: str) -> List[ReportRecord]:
        ...

    def get_for_user(self, report_id: int, user_id: str) -> Optional[ReportRecord]:
        ...

    def set_analysis(self, report_id: int, analysis: str) -> None:
        ...

    def delete(self, report_id: int) -> None:
        ...
