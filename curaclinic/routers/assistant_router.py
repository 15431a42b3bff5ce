from typing import List
from fastapi import APIRouter, Depends

from ..application.services.assistant_service import AssistantService, PendingMessage, TranscriptEntry
from ..schemas.assistant.assistant import (
    ChatRequest,
    ChatResponse,
    PendingMessageResponse,
    ReportAnalysisRequest,
    ReportAnalysisResponse,
    StoredMessageResponse,
    TranscriptResponse,
)
from .deps import assistant_rate_limit, get_assistant_service, get_current_user

router = APIRouter(prefix="/assistant", tags=["Assistant"])


def transcript(entries: List[TranscriptEntry]) -> TranscriptResponse:
    return TranscriptResponse(messages=[
        PendingMessageResponse.model_validate(e) if isinstance(e, PendingMessage) else StoredMessageResponse.model_validate(e)
        for e in entries
    ])


@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    current_user: str = Depends(assistant_rate_limit),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return ChatResponse(response=assistant.chat(body.message))


@router.post("/analyze-report", response_model=ReportAnalysisResponse)
def analyze_report(
    body: ReportAnalysisRequest,
    current_user: str = Depends(assistant_rate_limit),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return ReportAnalysisResponse(analysis=assistant.analyze_report(body.content))


@router.get("/messages", response_model=TranscriptResponse)
def chat_history(
    current_user: str = Depends(get_current_user),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return transcript(assistant.history(current_user))


@router.post("/messages", response_model=TranscriptResponse)
def send_message(
    body: ChatRequest,
    current_user: str = Depends(assistant_rate_limit),
    assistant: AssistantService = Depends(get_assistant_service),
):
    return transcript(assistant.converse(current_user, body.message))
