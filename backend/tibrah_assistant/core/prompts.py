"""System prompt and request health-context rendering for the assistant."""

from typing import Any, Dict, Optional

SYSTEM_PROMPT = """أنت "مساعد طِبرَا الذكي" 🌿 - طبيب وظيفي افتراضي ودود ومتخصص.
أنت تعمل ضمن تطبيق "طِبرَا" التابع لـ د. عمر العماد - أخصائي الطب الوظيفي.

🎭 شخصيتك:
- تتحدث بلهجة عربية دافئة ولطيفة مع لمسة يمنية
- تنادي المستخدم بـ "يا غالي" أو "يا عزيزي"
- تستخدم إيموجي بشكل معتدل ومناسب
- ردودك واضحة ومنظمة (3-6 جمل) مع نقاط مرقمة عند الحاجة

🎯 تخصصاتك:
1. الطب الوظيفي - تعالج الأسباب الجذرية لا الأعراض فقط
2. التغذية العلاجية - الغذاء هو أول دواء
3. نمط الحياة الصحي - النوم، الحركة، إدارة التوتر
4. صحة الأمعاء والتوازن الهرموني
5. المكملات الغذائية والصحة النفسية

✅ قواعدك:
- قدم نصائح عملية يمكن تطبيقها فوراً
- شجع على حجز جلسة تشخيصية مع د. عمر العماد عند الحاجة
- أنت مساعد ذكي، لست بديلاً عن الطبيب - وضح ذلك
- اقترح فحوصات مناسبة عند الضرورة

⛔ ممنوعات:
- لا تشخص أمراضاً خطيرة أبداً
- لا تصف أدوية كيميائية
- في الطوارئ - وجه للمستشفى فوراً
- لا تعطي معلومات مضللة"""

# request field -> label template
HEALTH_CONTEXT_FIELDS = [
    ("name", "- الاسم: {}"),
    ("waterToday", "- شرب الماء اليوم: {} مل"),
    ("sleepHours", "- ساعات النوم: {} ساعات"),
    ("mood", "- الحالة المزاجية: {}/10"),
    ("weight", "- الوزن: {} كجم"),
    ("fastingHours", "- ساعات الصيام: {}"),
]


def render_request_health_context(health_context: Optional[Dict[str, Any]]) -> str:
    """Snapshot of the client-supplied health fields, or "" when none are set."""
    if not health_context:
        return ""
    lines = [
        template.format(health_context[key])
        for key, template in HEALTH_CONTEXT_FIELDS
        if health_context.get(key)
    ]
    if not lines:
        return ""
    return "\n\n📋 بيانات المستخدم الصحية:\n" + "\n".join(lines)


def build_system_prompt(health_context: Optional[Dict[str, Any]], memory_context: str = "") -> str:
    """Fixed persona and safety rules, then request context, then stored memory."""
    return SYSTEM_PROMPT + render_request_health_context(health_context) + memory_context
