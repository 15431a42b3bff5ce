# curaclinic/schemas/assistant/assistant.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Union
from typing_extensions import Annotated
from datetime import datetime

class ChatRequest(BaseModel):
    message: str = Field(..., max_length=4000)

class ChatResponse(BaseModel):
    response: str

class ReportAnalysisRequest(BaseModel):
    content: str

class ReportAnalysisResponse(BaseModel):
    analysis: str

class PendingMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    state: Literal["pending"] = "pending"
    client_ref: str
    role: str
    content: str
    created_at: datetime

class StoredMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    state: Literal["stored"] = "stored"
    id: int
    role: str
    content: str
    created_at: datetime

TranscriptEntryResponse = Annotated[
    Union[PendingMessageResponse, StoredMessageResponse],
    Field(discriminator="state"),
]

class TranscriptResponse(BaseModel):
    messages: List[TranscriptEntryResponse]
