"""Models module."""

from .conversation import ChatMessage, MessageMetadata, Conversation, ConversationArchive
from .health import (
    HealthProfile, HealthMetrics, HealthInsight, UserPreferences,
    WeightSnapshot, HeightSnapshot, BloodPressureSnapshot, SleepSnapshot, WaterSnapshot,
)
from .chat import ChatRequest, ChatResponse, HistoryTurn, InsightCreate, MetricsUpdate

__all__ = [
    'ChatMessage', 'MessageMetadata', 'Conversation', 'ConversationArchive',
    'HealthProfile', 'HealthMetrics', 'HealthInsight', 'UserPreferences',
    'WeightSnapshot', 'HeightSnapshot', 'BloodPressureSnapshot', 'SleepSnapshot', 'WaterSnapshot',
    'ChatRequest', 'ChatResponse', 'HistoryTurn', 'InsightCreate', 'MetricsUpdate',
]
