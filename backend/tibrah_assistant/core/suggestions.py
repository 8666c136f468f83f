"""Deterministic quick-reply suggestions keyed on domain keywords."""

from typing import List, Tuple

# (bucket, keywords, quick replies); first match wins, order matters
SUGGESTION_BUCKETS: List[Tuple[str, List[str], List[str]]] = [
    ("nutrition", ["تغذي", "أكل", "طعام", "وجب"],
     ["🥗 ما هو أفضل نظام غذائي لي؟", "🍯 ما فوائد العسل اليمني؟", "⏰ ما رأيك بالصيام المتقطع؟"]),
    ("sleep", ["نوم", "أرق", "سهر"],
     ["🌙 نصائح لتحسين النوم", "🧘 تمارين استرخاء قبل النوم", "☕ هل الكافيين يؤثر على نومي؟"]),
    ("pain", ["ألم", "صداع", "وجع"],
     ["💊 علاجات طبيعية للألم", "🏥 متى يجب زيارة الطبيب؟", "📅 أريد حجز جلسة تشخيصية"]),
    ("stress", ["توتر", "قلق", "ضغط", "نفسي"],
     ["🧘 تقنيات تقليل التوتر", "🌿 أعشاب مهدئة طبيعية", "💪 تمارين تحسين المزاج"]),
    ("weight", ["وزن", "تخسيس", "سمنة", "دهون"],
     ["⚖️ خطة إنقاص وزن صحية", "🏃 تمارين حرق الدهون", "🥑 أطعمة تسرع الأيض"]),
    ("fasting", ["صيام", "ديتوكس"],
     ["⏰ أفضل جدول للصيام المتقطع", "🥤 ماذا أشرب أثناء الصيام؟", "🍽️ ماذا آكل عند الإفطار؟"]),
]

DEFAULT_SUGGESTIONS = ["📋 حلل وضعي الصحي", "🩺 أريد جلسة مع د. عمر", "💊 ما المكملات المناسبة لي؟"]


def generate_suggestions(user_message: str, ai_response: str) -> List[str]:
    """Three follow-up prompts for the first bucket matching the exchange."""
    text = f"{user_message} {ai_response}".casefold()
    for _bucket, keywords, replies in SUGGESTION_BUCKETS:
        if any(keyword in text for keyword in keywords):
            return list(replies)
    return list(DEFAULT_SUGGESTIONS)
