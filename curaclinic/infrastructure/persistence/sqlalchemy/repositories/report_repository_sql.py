from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import BloodReport
from .....application.ports.report_repo import ReportRepository, ReportRecord


class SqlReportRepository(ReportRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, r: BloodReport) -> ReportRecord:
        return ReportRecord(
            id=r.id,
            user_id=r.user_id,
            file_name=r.file_name,
            content=r.content,
            file_url=r.file_url,
            analysis=r.analysis,
            uploaded_at=r.uploaded_at,
        )

    def create(self, user_id: str, file_name: str, file_url: Optional[str], content: Optional[str]) -> ReportRecord:
        r = BloodReport(user_id=user_id, file_name=file_name, file_url=file_url, content=content)
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_record(r)

    def list_for_user(self, user_id: str) -> List[ReportRecord]:
        rows = self.session.exec(
            select(BloodReport)
            .where(BloodReport.user_id == user_id)
            .order_by(BloodReport.uploaded_at.desc(), BloodReport.id.desc())
        ).all()
        return [self._to_record(r) for r in rows]

    def get_for_user(self, report_id: int, user_id: str) -> Optional[ReportRecord]:
        r = self.session.exec(
            select(BloodReport)
            .where(BloodReport.id == report_id)
            .where(BloodReport.user_id == user_id)
        ).first()
        return self._to_record(r) if r else None

    def set_analysis(self, report_id: int, analysis: str) -> None:
        r = self.session.get(BloodReport, report_id)
        if not r:
            return
        r.analysis = analysis
        self.session.add(r)
        self.session.commit()

    def delete(self, report_id: int) -> None:
        r = self.session.get(BloodReport, report_id)
        if not r:
            return
        self.session.delete(r)
        self.session.commit()
