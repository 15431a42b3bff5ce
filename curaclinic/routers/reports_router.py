from typing import List
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from ..application.services.reports_service import ReportsService
from ..schemas.common.common import MessageResponse
from ..schemas.reports.report import ReportResponse
from .deps import assistant_rate_limit, get_current_user, get_reports_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/", response_model=List[ReportResponse])
def list_reports(
    current_user: str = Depends(get_current_user),
    reports: ReportsService = Depends(get_reports_service),
):
    return [ReportResponse.model_validate(r) for r in reports.list_for_user(current_user)]


@router.post("/", response_model=ReportResponse, status_code=201)
async def upload_report(
    report_name: str = Form(...),
    file: UploadFile = File(...),
    current_user: str = Depends(get_current_user),
    reports: ReportsService = Depends(get_reports_service),
):
    return ReportResponse.model_validate(await reports.upload(current_user, report_name, file))


@router.post("/{report_id}/analyze", response_model=ReportResponse)
def analyze_report(
    report_id: int,
    current_user: str = Depends(assistant_rate_limit),
    reports: ReportsService = Depends(get_reports_service),
):
    return ReportResponse.model_validate(reports.analyze(current_user, report_id))


@router.get("/{report_id}/file")
def download_report(
    report_id: int,
    current_user: str = Depends(get_current_user),
    reports: ReportsService = Depends(get_reports_service),
):
    path, filename = reports.download(current_user, report_id)
    return FileResponse(path, filename=filename)


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(
    report_id: int,
    current_user: str = Depends(get_current_user),
    reports: ReportsService = Depends(get_reports_service),
):
    reports.delete(current_user, report_id)
    return MessageResponse(message="The report has been removed.")
