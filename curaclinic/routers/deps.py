from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..core.config import settings
from ..core.security import decode_jwt_token
from ..database import get_session
from ..application.ports.ai_provider import AIProvider
from ..application.ports.rate_limiter import RateLimiter
from ..application.services.appointments_service import AppointmentsService
from ..application.services.assistant_service import AssistantService
from ..application.services.booking_registry import BookingFlowRegistry
from ..application.services.doctors_service import DoctorsService
from ..application.services.profile_service import ProfileService
from ..application.services.reports_service import ReportsService
from ..infrastructure.ai.gemini_provider import GeminiProvider
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentLedger
from ..infrastructure.persistence.sqlalchemy.repositories.chat_repository_sql import SqlChatRepository
from ..infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorDirectory
from ..infrastructure.persistence.sqlalchemy.repositories.profile_repository_sql import SqlProfileRepository
from ..infrastructure.persistence.sqlalchemy.repositories.report_repository_sql import SqlReportRepository
from ..infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from ..infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from ..infrastructure.storage.local_storage import LocalStorageRepository

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)

# Dependency to get current user from JWT
def get_current_user(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)) -> str:
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get("access_token")
    if not token:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    payload = decode_jwt_token(token)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing user ID")
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return str(user_id)


@lru_cache()
def get_ai_provider() -> AIProvider:
    return GeminiProvider()


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.REDIS_URL:
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(settings.REDIS_URL)
    logger.info("Using memory-based rate limiting")
    return InMemoryRateLimiter()


_booking_flows = BookingFlowRegistry()

def get_booking_registry() -> BookingFlowRegistry:
    return _booking_flows


def get_directory(session: Session = Depends(get_session)) -> SqlDoctorDirectory:
    return SqlDoctorDirectory(session)


def get_ledger(session: Session = Depends(get_session)) -> SqlAppointmentLedger:
    return SqlAppointmentLedger(session)


def get_appointments_service(
    ledger: SqlAppointmentLedger = Depends(get_ledger),
    directory: SqlDoctorDirectory = Depends(get_directory),
) -> AppointmentsService:
    return AppointmentsService(ledger=ledger, directory=directory, horizon_days=settings.BOOKING_HORIZON_DAYS)


def get_doctors_service(
    session: Session = Depends(get_session),
    directory: SqlDoctorDirectory = Depends(get_directory),
) -> DoctorsService:
    return DoctorsService(directory=directory, profiles=SqlProfileRepository(session))


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(profile_repo=SqlProfileRepository(session))


def get_assistant_service(
    session: Session = Depends(get_session),
    ai_provider: AIProvider = Depends(get_ai_provider),
) -> AssistantService:
    return AssistantService(
        ai_provider=ai_provider,
        chat_repo=SqlChatRepository(session),
        history_limit=settings.CHAT_HISTORY_LIMIT,
    )


def get_reports_service(
    session: Session = Depends(get_session),
    assistant: AssistantService = Depends(get_assistant_service),
) -> ReportsService:
    return ReportsService(
        report_repo=SqlReportRepository(session),
        storage_repo=LocalStorageRepository(),
        assistant=assistant,
    )


def assistant_rate_limit(
    current_user: str = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> str:
    key = f"assistant:{current_user}"
    if not limiter.allow(key, settings.ASSISTANT_RATE_LIMIT, settings.ASSISTANT_RATE_WINDOW_SEC):
        logger.warning(f"Assistant rate limit exceeded for user {current_user}")
        raise HTTPException(status_code=429, detail="Too many assistant requests. Please try again later.")
    return current_user
