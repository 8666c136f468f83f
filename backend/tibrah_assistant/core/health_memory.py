"""
Health Memory - Long-term health context mined from user messages.

Pattern-based and deliberately low precision: it keeps hints for the model
(conditions, medications, allergies, goals, a few metrics), not verified
medical facts. Patterns are tuned to Arabic self-disclosure phrasing and live
in plain tables so categories or languages can be added without touching the
extraction loop.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple

from pydantic import ValidationError

from ..models import HealthInsight, HealthMetrics, HealthProfile, UserPreferences, WeightSnapshot
from ..storage import StorageInterface

logger = logging.getLogger(__name__)

STORAGE_KEY = "health/tibrah_health_memory.json"
MAX_INSIGHTS = 30
MAX_ITEMS_PER_CATEGORY = 20
MAX_INSIGHT_LENGTH = 200
RECENT_INSIGHTS_IN_CONTEXT = 5
RECENT_GOALS_IN_CONTEXT = 5

_END = r"(?:\s|$|،|\.)"

# profile list field -> self-disclosure templates; group 1 is the fact
HEALTH_PATTERNS: Dict[str, List[Pattern]] = {
    "conditions": [
        re.compile(rf"أعاني\s+من\s+(.+?){_END}"),
        re.compile(rf"عندي\s+(.+?){_END}"),
        re.compile(rf"مصاب\s+ب(.+?){_END}"),
        re.compile(rf"مشكلة\s+في\s+(.+?){_END}"),
        re.compile(rf"تم\s+تشخيصي\s+ب(.+?){_END}"),
    ],
    "medications": [
        re.compile(rf"أستخدم\s+(.+?){_END}"),
        re.compile(rf"آخذ\s+(.+?){_END}"),
        re.compile(rf"دوائي\s+(.+?){_END}"),
        re.compile(rf"أتناول\s+دواء\s+(.+?){_END}"),
    ],
    "allergies": [
        re.compile(rf"حساسية\s+(?:من|ل)\s*(.+?){_END}"),
        re.compile(rf"لا\s+أتحمل\s+(.+?){_END}"),
    ],
    "goals": [
        re.compile(rf"أريد\s+أن\s+(.+?){_END}"),
        re.compile(rf"هدفي\s+(.+?){_END}"),
        re.compile(rf"محتاج\s+(.+?){_END}"),
        re.compile(rf"أحتاج\s+(.+?){_END}"),
        re.compile(rf"أبي\s+(.+?){_END}"),
    ],
}

# numeric fact -> (templates, inclusive plausible range)
NUMERIC_PATTERNS: Dict[str, Tuple[List[Pattern], Tuple[int, int]]] = {
    "weight": (
        [
            re.compile(r"وزني\s+(\d+)"),
            re.compile(r"(\d+)\s*كيلو"),
            re.compile(r"(\d+)\s*kg", re.IGNORECASE),
        ],
        (20, 300),
    ),
    "age": (
        [
            re.compile(r"عمري\s+(\d+)"),
            re.compile(r"عندي\s+(\d+)\s+سنة"),
        ],
        (5, 120),
    ),
}

GENDER_PHRASES: Dict[str, List[str]] = {
    "male": ["أنا رجل", "أنا ذكر"],
    "female": ["أنا امرأة", "أنا أنثى"],
}


def add_unique(items: List[str], value: str, max_items: int = MAX_ITEMS_PER_CATEGORY) -> List[str]:
    """Append a trimmed value if plausible and unseen, keeping the newest max_items."""
    trimmed = value.strip()
    if len(trimmed) < 2 or len(trimmed) > 100:
        return items
    if trimmed in items:
        return items
    return (items + [trimmed])[-max_items:]


class HealthMemory:
    """
    Owner of the single HealthProfile. Every mutation is persisted
    immediately; a failed write is logged and the in-memory profile kept.
    """

    def __init__(
        self,
        storage: StorageInterface,
        patterns: Optional[Dict[str, List[Pattern]]] = None,
        numeric_patterns: Optional[Dict[str, Tuple[List[Pattern], Tuple[int, int]]]] = None,
    ):
        self.storage = storage
        self.patterns = patterns if patterns is not None else HEALTH_PATTERNS
        self.numeric_patterns = numeric_patterns if numeric_patterns is not None else NUMERIC_PATTERNS
        self._profile = HealthProfile()

    async def load(self) -> None:
        """Restore the profile; missing or corrupt data falls back to defaults."""
        content = await self.storage.load(STORAGE_KEY)
        if content is None:
            return
        try:
            self._profile = HealthProfile.model_validate_json(content)
        except (ValidationError, ValueError) as e:
            logger.error(f"Failed to load health memory, using defaults: {e}")
            self._profile = HealthProfile()

    async def _save(self) -> None:
        self._profile.updated_at = datetime.now(timezone.utc)
        saved = await self.storage.save(STORAGE_KEY, self._profile.model_dump_json())
        if not saved:
            logger.warning("Health memory not persisted, keeping in-memory profile only")

    async def extract_from_message(self, text: str) -> None:
        """Mine a user message for health facts and merge them into the profile."""
        profile = self._profile
        today = date.today().isoformat()

        for field, patterns in self.patterns.items():
            values = getattr(profile, field)
            for pattern in patterns:
                for match in pattern.finditer(text):
                    values = add_unique(values, match.group(1))
            setattr(profile, field, values)

        weight = self._match_number("weight", text)
        if weight is not None:
            profile.metrics.weight = WeightSnapshot(value=weight, date=today)

        age = self._match_number("age", text)
        if age is not None:
            profile.preferences.age = age

        for gender, phrases in GENDER_PHRASES.items():
            if any(phrase in text for phrase in phrases):
                profile.preferences.gender = gender
                break

        await self._save()

    def _match_number(self, name: str, text: str) -> Optional[int]:
        """Last in-range capture across the templates for name, or None."""
        if name not in self.numeric_patterns:
            return None
        patterns, (low, high) = self.numeric_patterns[name]
        found = None
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                value = int(match.group(1))
                if low <= value <= high:
                    found = value
        return found

    async def add_insight(self, text: str, category: str, source: str = "chat") -> HealthInsight:
        insight = HealthInsight(text=text[:MAX_INSIGHT_LENGTH], category=category, source=source)
        self._profile.insights = (self._profile.insights + [insight])[-MAX_INSIGHTS:]
        await self._save()
        return insight

    async def update_metrics(self, metrics: Mapping[str, Any]) -> HealthMetrics:
        """
        Merge partial metric snapshots; given fields replace the stored ones.

        Args:
            metrics: e.g. {"sleep_avg": {"hours": 7, "date": "2024-05-01"}}

        Returns:
            HealthMetrics: The merged metrics
        """
        merged = {**self._profile.metrics.model_dump(), **dict(metrics)}
        self._profile.metrics = HealthMetrics.model_validate(merged)
        await self._save()
        return self._profile.metrics

    async def update_preferences(self, **fields: Any) -> UserPreferences:
        merged = {**self._profile.preferences.model_dump(), **fields}
        self._profile.preferences = UserPreferences.model_validate(merged)
        await self._save()
        return self._profile.preferences

    def build_health_context(self) -> str:
        """
        Render non-empty profile fields into a labelled prompt block.

        Returns:
            str: The block, or "" when the profile holds nothing
        """
        profile = self._profile
        prefs = profile.preferences
        metrics = profile.metrics
        parts: List[str] = []

        if prefs.name:
            parts.append(f"اسم المستخدم: {prefs.name}")
        if prefs.age:
            parts.append(f"العمر: {prefs.age} سنة")
        if prefs.gender:
            parts.append(f"الجنس: {'ذكر' if prefs.gender == 'male' else 'أنثى'}")

        if profile.conditions:
            parts.append(f"الحالات الصحية: {'، '.join(profile.conditions)}")
        if profile.medications:
            parts.append(f"الأدوية الحالية: {'، '.join(profile.medications)}")
        if profile.allergies:
            parts.append(f"الحساسيات: {'، '.join(profile.allergies)}")
        if profile.goals:
            parts.append(f"الأهداف الصحية: {'، '.join(profile.goals[-RECENT_GOALS_IN_CONTEXT:])}")

        if metrics.weight:
            parts.append(f"الوزن: {metrics.weight.value:g}كجم ({metrics.weight.date})")
        if metrics.height:
            parts.append(f"الطول: {metrics.height.value:g}سم ({metrics.height.date})")
        if metrics.blood_pressure:
            bp = metrics.blood_pressure
            parts.append(f"ضغط الدم: {bp.systolic}/{bp.diastolic} ({bp.date})")
        if metrics.sleep_avg:
            parts.append(f"متوسط النوم: {metrics.sleep_avg.hours:g} ساعات ({metrics.sleep_avg.date})")
        if metrics.water_avg:
            parts.append(f"متوسط شرب الماء: {metrics.water_avg.cups:g} أكواب ({metrics.water_avg.date})")

        recent = profile.insights[-RECENT_INSIGHTS_IN_CONTEXT:]
        if recent:
            parts.append(f"ملاحظات سابقة: {' | '.join(i.text for i in recent)}")

        if not parts:
            return ""

        # self-reported and unverified; the model must treat these as hints
        return "\n\n[ذاكرة المستخدم الصحية - معلومات ذكرها المستخدم وغير مؤكدة طبياً]\n" + "\n".join(parts)

    def get_health_profile(self) -> HealthProfile:
        return self._profile.model_copy(deep=True)

    def export(self) -> Dict[str, Any]:
        """Whole profile as a JSON-ready dict (data portability)."""
        data = self._profile.model_dump(mode="json")
        data["exported_at"] = datetime.now(timezone.utc).isoformat()
        return data

    async def clear_health_memory(self) -> None:
        self._profile = HealthProfile()
        await self.storage.delete(STORAGE_KEY)
