"""
Conversation Models - Defines structures for stored chat sessions.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Literal
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageMetadata(BaseModel):
    """Optional annotations attached to a message."""
    health_context: bool = False
    intent: Optional[str] = None
    sentiment: Optional[Literal["positive", "neutral", "negative"]] = None


class ChatMessage(BaseModel):
    """A single immutable chat turn."""
    id: str = Field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: Optional[MessageMetadata] = None

    model_config = {"frozen": True}


class Conversation(BaseModel):
    """Bounded, ordered sequence of turns sharing one session identity."""
    id: str = Field(default_factory=lambda: f"conv_{uuid.uuid4().hex[:12]}")
    messages: List[ChatMessage] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utcnow)
    last_message_at: datetime = Field(default_factory=_utcnow)
    topics: List[str] = Field(default_factory=list)  # recency-ordered, oldest first
    summary: Optional[str] = None


class ConversationArchive(BaseModel):
    """Persisted envelope: {"conversations": [...]}."""
    conversations: List[Conversation] = Field(default_factory=list)
