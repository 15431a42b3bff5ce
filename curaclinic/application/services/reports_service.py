from dataclasses import dataclass
from typing import List, Tuple
from fastapi import UploadFile, HTTPException
import logging
import os

from ..ports.report_repo import ReportRepository, ReportRecord
from ..ports.storage_repo import StorageRepository
from .assistant_service import AssistantService
from ...core.config import settings

logger = logging.getLogger(__name__)


def analysis_input(report: ReportRecord) -> str:
    if report.content:
        return report.content
    if report.file_url:
        return f"PDF Report: {report.file_name}. File located at: {report.file_url}"
    return "No content available"


@dataclass
class ReportsService:
    report_repo: ReportRepository
    storage_repo: StorageRepository
    assistant: AssistantService

    async def upload(self, user_id: str, report_name: str, uploaded: UploadFile) -> ReportRecord:
        name = (report_name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Report name is required")
        if uploaded.content_type not in settings.ALLOWED_REPORT_TYPES:
            raise HTTPException(status_code=415, detail=f"File type {uploaded.content_type} not allowed")

        data = await uploaded.read()
        if len(data) > settings.MAX_FILE_SIZE:
            raise HTTPException(status_code=413, detail=f"File too large (max {settings.MAX_FILE_SIZE // (1024*1024)}MB)")

        content = None
        if uploaded.content_type == "text/plain":
            content = data.decode("utf-8", errors="replace")

        key = self.storage_repo.save_bytes(user_id, os.path.basename(uploaded.filename or "report"), data)
        try:
            record = self.report_repo.create(user_id=user_id, file_name=name, file_url=key, content=content)
        except Exception as e:
            logger.error(f"Saving report for {user_id} failed, removing {key}: {e}")
            self.storage_repo.remove(key)
            raise
        logger.info(f"Report {record.id} uploaded by {user_id}")
        return record

    def list_for_user(self, user_id: str) -> List[ReportRecord]:
        return self.report_repo.list_for_user(user_id)

    def _own(self, user_id: str, report_id: int) -> ReportRecord:
        report = self.report_repo.get_for_user(report_id, user_id)
        if not report:
            raise HTTPException(status_code=404, detail="Report not found")
        return report

    def analyze(self, user_id: str, report_id: int) -> ReportRecord:
        report = self._own(user_id, report_id)
        try:
            analysis = self.assistant.analyze_report(analysis_input(report))
        except HTTPException as e:
            logger.error(f"Analysis failed for report {report_id}: {e.detail}")
            raise HTTPException(status_code=e.status_code, detail="Could not analyze the report. Please try again.")
        self.report_repo.set_analysis(report.id, analysis)
        report.analysis = analysis
        return report

    def download(self, user_id: str, report_id: int) -> Tuple[str, str]:
        report = self._own(user_id, report_id)
        if not report.file_url:
            raise HTTPException(status_code=404, detail="Report has no file")
        path = self.storage_repo.open_path(report.file_url)
        if not os.path.exists(path):
            raise HTTPException(status_code=404, detail="Report file is missing")
        extension = os.path.splitext(report.file_url)[1] or ".pdf"
        return path, f"{report.file_name}{extension}"

    def delete(self, user_id: str, report_id: int) -> None:
        report = self._own(user_id, report_id)
        if report.file_url:
            self.storage_repo.remove(report.file_url)
        self.report_repo.delete(report.id)
        logger.info(f"Report {report_id} deleted by {user_id}")
