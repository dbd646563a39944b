"""Prompt template and response schema for meal analysis.

The nutrition-analysis policy lives here: the Arabic instruction sent with every
photo and the JSON schema the provider must answer with. Consumed only by
doctor_food.services.request_builder.
"""

from google.genai import types

from doctor_food.models.models import Gender

GENDER_LABELS = {
    Gender.MALE: "ذكر",
    Gender.FEMALE: "أنثى",
}

MEAL_ANALYSIS_PROMPT_TEMPLATE = """أنت خبير تغذية وطبيب محترف. قم بتحليل صورة الطعام المرفقة.
المستخدم هو: {gender}، العمر: {age} سنة، الوزن: {weight} كجم.

قم بتحليل الصورة بدقة وقدم المعلومات التالية باللغة العربية:
1. اسم الطعام أو الوجبة.
2. الوزن التقديري للوجبة بالجرام.
3. السعرات الحرارية التقديرية.
4. نبذة عن التأثير الصحي لهذه الوجبة على المستخدم بناءً على بياناته.
5. هل الوجبة صحية أم لا (نعم/لا).
6. تقييم الوجبة من 10 (رقم).
7. قائمة بالبدائل الصحية إذا كانت غير صحية، أو إضافات صحية إذا كانت صحية.
8. تحليل شامل ومفصل للوجبة ومدى ملاءمتها للمستخدم.
"""

# Wire field names, in schema order. All of them are required.
RESPONSE_FIELDS = (
    "foodName",
    "estimatedWeight",
    "calories",
    "healthiness",
    "isHealthy",
    "rating",
    "healthyAlternatives",
    "analysis",
)


def build_response_schema() -> types.Schema:
    """Return the structured-output schema for one meal analysis."""
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "foodName": types.Schema(
                type=types.Type.STRING,
                description="اسم الطعام أو الوجبة",
            ),
            "estimatedWeight": types.Schema(
                type=types.Type.STRING,
                description="الوزن التقديري مع الوحدة (مثال: 250 جرام)",
            ),
            "calories": types.Schema(
                type=types.Type.STRING,
                description="السعرات الحرارية التقديرية (مثال: 450 سعرة)",
            ),
            "healthiness": types.Schema(
                type=types.Type.STRING,
                description="نبذة قصيرة عن التأثير الصحي",
            ),
            "isHealthy": types.Schema(
                type=types.Type.BOOLEAN,
                description="هل الوجبة صحية بشكل عام",
            ),
            "rating": types.Schema(
                type=types.Type.NUMBER,
                description="تقييم الوجبة من 10",
            ),
            "healthyAlternatives": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                description="بدائل صحية أو إضافات مقترحة",
            ),
            "analysis": types.Schema(
                type=types.Type.STRING,
                description="تحليل شامل ومفصل",
            ),
        },
        required=list(RESPONSE_FIELDS),
    )
