"""
Chat API Models - Request and response bodies of the chat endpoint.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class HistoryTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Inbound chat request. `message` is validated by the route for a precise 400."""
    message: Optional[str] = None
    health_context: Optional[Dict[str, Any]] = Field(None, alias="healthContext")
    history: Optional[List[HistoryTurn]] = None
    conversation_id: Optional[str] = Field(None, alias="conversationId")

    model_config = {"populate_by_name": True}


class ChatResponse(BaseModel):
    text: str
    source: str
    success: bool = True
    suggestions: List[str] = Field(default_factory=list)
    conversation_id: str = Field(..., serialization_alias="conversationId")


class InsightCreate(BaseModel):
    text: str = Field(..., min_length=1)
    category: str = "progress"
    source: str = "tracker"


class MetricsUpdate(BaseModel):
    """Partial metrics from a tracker; omitted fields are left untouched."""
    weight: Optional[float] = None
    height: Optional[float] = None
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    sleep_hours: Optional[float] = Field(None, alias="sleepHours")
    water_cups: Optional[float] = Field(None, alias="waterCups")

    model_config = {"populate_by_name": True}
