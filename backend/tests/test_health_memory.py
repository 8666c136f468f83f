"""
Unit tests for health memory extraction, persistence and context rendering.
"""

import re
from datetime import date

import pytest

from tibrah_assistant.core.health_memory import (
    HealthMemory,
    MAX_INSIGHTS,
    STORAGE_KEY,
    add_unique,
)


class TestAddUnique:

    def test_appends_trimmed_value(self):
        assert add_unique(["سكري"], "  ضغط ") == ["سكري", "ضغط"]

    def test_skips_duplicates_and_implausible_lengths(self):
        assert add_unique(["سكري"], "سكري") == ["سكري"]
        assert add_unique([], "x") == []
        assert add_unique([], "x" * 101) == []

    def test_keeps_newest_items(self):
        items = [f"item {i}" for i in range(3)]
        assert add_unique(items, "item 3", max_items=3) == ["item 1", "item 2", "item 3"]


class TestExtraction:

    @pytest.mark.asyncio
    async def test_condition_extracted(self, health_memory):
        await health_memory.extract_from_message("أعاني من صداع وأشرب القهوة كثيراً")
        assert health_memory.get_health_profile().conditions == ["صداع"]

    @pytest.mark.asyncio
    async def test_extraction_is_idempotent(self, health_memory):
        text = "أعاني من صداع وأشرب القهوة كثيراً"
        await health_memory.extract_from_message(text)
        first = health_memory.get_health_profile()
        await health_memory.extract_from_message(text)
        second = health_memory.get_health_profile()

        assert second.conditions == first.conditions
        assert second.medications == first.medications
        assert second.goals == first.goals

    @pytest.mark.asyncio
    async def test_medication_allergy_and_goal(self, health_memory):
        await health_memory.extract_from_message("أتناول دواء الميتفورمين")
        await health_memory.extract_from_message("عندي حساسية من الفول")
        await health_memory.extract_from_message("هدفي النوم مبكراً")

        profile = health_memory.get_health_profile()
        assert "الميتفورمين" in profile.medications
        assert "الفول" in profile.allergies
        assert "النوم" in profile.goals

    @pytest.mark.asyncio
    async def test_weight_in_range_recorded_with_today(self, health_memory):
        await health_memory.extract_from_message("وزني 72 كيلو")

        weight = health_memory.get_health_profile().metrics.weight
        assert weight.value == 72
        assert weight.date == date.today().isoformat()

    @pytest.mark.asyncio
    async def test_weight_out_of_range_ignored(self, health_memory):
        await health_memory.extract_from_message("وزني 15")
        assert health_memory.get_health_profile().metrics.weight is None

    @pytest.mark.asyncio
    async def test_range_bounds_are_inclusive(self, health_memory):
        await health_memory.extract_from_message("وزني 300")
        assert health_memory.get_health_profile().metrics.weight.value == 300

        await health_memory.extract_from_message("عمري 5")
        assert health_memory.get_health_profile().preferences.age == 5

    @pytest.mark.asyncio
    async def test_age_and_gender(self, health_memory):
        await health_memory.extract_from_message("أنا امرأة عمري 34")

        prefs = health_memory.get_health_profile().preferences
        assert prefs.age == 34
        assert prefs.gender == "female"

    @pytest.mark.asyncio
    async def test_age_out_of_range_ignored(self, health_memory):
        await health_memory.extract_from_message("عمري 150")
        assert health_memory.get_health_profile().preferences.age is None

    @pytest.mark.asyncio
    async def test_kinship_words_do_not_set_gender(self, health_memory):
        await health_memory.extract_from_message("أخي مريض وأختي بخير")
        assert health_memory.get_health_profile().preferences.gender is None

    @pytest.mark.asyncio
    async def test_pluggable_patterns(self, storage):
        memory = HealthMemory(
            storage,
            patterns={"conditions": [re.compile(r"I have (\w+)")]},
            numeric_patterns={"weight": ([re.compile(r"(\d+) lbs")], (40, 700))},
        )
        await memory.extract_from_message("I have asthma and weigh 180 lbs")

        profile = memory.get_health_profile()
        assert profile.conditions == ["asthma"]
        assert profile.metrics.weight.value == 180
        assert profile.preferences.age is None


class TestInsightsAndMetrics:

    @pytest.mark.asyncio
    async def test_insights_capped(self, health_memory):
        for i in range(MAX_INSIGHTS + 5):
            await health_memory.add_insight(f"insight {i}", "progress")

        insights = health_memory.get_health_profile().insights
        assert len(insights) == MAX_INSIGHTS
        assert insights[0].text == "insight 5"
        assert insights[-1].source == "chat"

    @pytest.mark.asyncio
    async def test_insight_text_truncated(self, health_memory):
        insight = await health_memory.add_insight("x" * 500, "concern", source="analysis")
        assert len(insight.text) == 200
        assert insight.id.startswith("insight_")

    @pytest.mark.asyncio
    async def test_update_metrics_merges(self, health_memory):
        await health_memory.extract_from_message("وزني 80")
        await health_memory.update_metrics({"sleep_avg": {"hours": 7, "date": "2024-05-01"}})

        metrics = health_memory.get_health_profile().metrics
        assert metrics.sleep_avg.hours == 7
        assert metrics.weight.value == 80

    @pytest.mark.asyncio
    async def test_update_preferences(self, health_memory):
        prefs = await health_memory.update_preferences(name="سارة", response_style="brief")
        assert prefs.name == "سارة"
        assert prefs.language == "ar"


class TestHealthContext:

    def test_empty_profile_renders_nothing(self, health_memory):
        assert health_memory.build_health_context() == ""

    @pytest.mark.asyncio
    async def test_context_is_labelled_unverified(self, health_memory):
        await health_memory.extract_from_message("أعاني من صداع")
        await health_memory.extract_from_message("وزني 72")

        context = health_memory.build_health_context()
        assert "غير مؤكدة طبياً" in context
        assert "الحالات الصحية: صداع" in context
        assert "الوزن: 72كجم" in context

    @pytest.mark.asyncio
    async def test_context_shows_recent_insights_only(self, health_memory):
        for i in range(7):
            await health_memory.add_insight(f"ملاحظة {i}", "progress")

        context = health_memory.build_health_context()
        assert "ملاحظة 6" in context
        assert "ملاحظة 1" not in context

    @pytest.mark.asyncio
    async def test_empty_after_clear(self, storage, health_memory):
        await health_memory.extract_from_message("أعاني من صداع")
        await health_memory.clear_health_memory()

        assert health_memory.build_health_context() == ""
        assert not await storage.exists(STORAGE_KEY)


class TestPersistence:

    @pytest.mark.asyncio
    async def test_round_trip(self, storage, health_memory):
        await health_memory.extract_from_message("أعاني من صداع")

        restored = HealthMemory(storage)
        await restored.load()

        assert restored.get_health_profile().conditions == ["صداع"]

    @pytest.mark.asyncio
    async def test_corrupt_data_falls_back_to_defaults(self, storage):
        await storage.save(STORAGE_KEY, "not json at all")

        memory = HealthMemory(storage)
        await memory.load()

        assert memory.get_health_profile().conditions == []
        assert memory.build_health_context() == ""

    @pytest.mark.asyncio
    async def test_profile_copy_is_detached(self, health_memory):
        await health_memory.extract_from_message("أعاني من صداع")
        health_memory.get_health_profile().conditions.append("شيء")
        assert health_memory.get_health_profile().conditions == ["صداع"]

    @pytest.mark.asyncio
    async def test_export(self, health_memory):
        await health_memory.extract_from_message("أعاني من صداع")

        exported = health_memory.export()
        assert exported["conditions"] == ["صداع"]
        assert "exported_at" in exported
        assert "updated_at" in exported
