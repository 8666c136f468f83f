"""
Health Memory Models - Cumulative health profile mined from conversations.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Literal
from pydantic import BaseModel, Field


InsightCategory = Literal["condition", "symptom", "goal", "progress", "concern"]
InsightSource = Literal["chat", "tracker", "analysis"]


class WeightSnapshot(BaseModel):
    value: float  # kg
    date: str  # ISO date observed


class HeightSnapshot(BaseModel):
    value: float  # cm
    date: str


class BloodPressureSnapshot(BaseModel):
    systolic: int
    diastolic: int
    date: str


class SleepSnapshot(BaseModel):
    hours: float
    date: str


class WaterSnapshot(BaseModel):
    cups: float
    date: str


class HealthMetrics(BaseModel):
    """Latest scalar observations; a newer snapshot replaces the older one."""
    weight: Optional[WeightSnapshot] = None
    height: Optional[HeightSnapshot] = None
    blood_pressure: Optional[BloodPressureSnapshot] = None
    sleep_avg: Optional[SleepSnapshot] = None
    water_avg: Optional[WaterSnapshot] = None


class UserPreferences(BaseModel):
    language: Literal["ar", "en"] = "ar"
    response_style: Literal["brief", "detailed", "motivational"] = "motivational"
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[Literal["male", "female"]] = None


class HealthInsight(BaseModel):
    """A key takeaway recorded from chat, a tracker or an analysis."""
    id: str = Field(default_factory=lambda: f"insight_{uuid.uuid4().hex[:12]}")
    text: str
    category: InsightCategory
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: InsightSource = "chat"


class HealthProfile(BaseModel):
    """
    Additive per-user health record. Fact lists are deduplicated and capped;
    only metric snapshots are ever overwritten.
    """
    conditions: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    metrics: HealthMetrics = Field(default_factory=HealthMetrics)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    insights: List[HealthInsight] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
