"""
Vision model prompts for nutritional analysis.

Static instructions live in the system prompt; the per-request part is the
user prompt, which only varies with the requested detail level.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from calorie_analyzer.domain.analysis.models import DetailLevel, ImageSubmission


# ═══════════════════════════════════════════════════════════
# REFERENCE DATA
# ═══════════════════════════════════════════════════════════

REFERENCE_FOODS: List[Dict[str, Any]] = [
    {"name": "Apple", "portion": "medium", "calories": 80, "fat_grams": 0.3,
     "protein_grams": 0.4, "carbs_grams": 21},
    {"name": "Banana", "portion": "medium", "calories": 105, "fat_grams": 0.4,
     "protein_grams": 1.3, "carbs_grams": 27},
    {"name": "Chicken breast", "portion": "100g", "calories": 165, "fat_grams": 3.6,
     "protein_grams": 31, "carbs_grams": 0},
    {"name": "Rice", "portion": "1 cup cooked", "calories": 205, "fat_grams": 0.4,
     "protein_grams": 4.3, "carbs_grams": 45},
    {"name": "Bread", "portion": "slice", "calories": 80, "fat_grams": 1,
     "protein_grams": 3, "carbs_grams": 15},
]

CONFIDENCE_BANDS = [
    ("0.9-1.0", "Very clear, identifiable food with known nutritional data"),
    ("0.7-0.8", "Clearly identifiable food but uncertain about exact preparation/portion"),
    ("0.5-0.6", "Food is somewhat identifiable but unclear type or preparation"),
    ("0.3-0.4", "Food present but difficult to identify specifically"),
    ("0.1-0.2", "Very unclear image or minimal food visible"),
]


def _format_reference_food(food: Dict[str, Any]) -> str:
    return (
        f"- {food['name']} ({food['portion']}): ~{food['calories']} calories, "
        f"{food['fat_grams']}g fat, {food['protein_grams']}g protein, "
        f"{food['carbs_grams']}g carbs"
    )


# ═══════════════════════════════════════════════════════════
# SYSTEM PROMPT (static instructions)
# ═══════════════════════════════════════════════════════════

_SYSTEM_PROMPT_TEMPLATE = """You are a nutrition expert AI assistant specializing in analyzing food images to estimate nutritional content. Your task is to examine food images and provide accurate nutritional estimates.

CRITICAL INSTRUCTIONS:
1. Always respond with valid JSON only - no additional text, explanations, or markdown formatting
2. If you cannot identify food clearly, still provide your best estimate with low confidence scores
3. Be conservative with portion size estimates - err on the side of smaller portions
4. Use standard serving sizes when possible (e.g., 1 cup, 1 slice, 100g)

RESPONSE FORMAT (JSON only):
{{
  "food_items": [
    {{
      "name": "descriptive food name",
      "confidence": 0.85,
      "nutrition": {{
        "calories": 150,
        "fat_grams": 8.5,
        "protein_grams": 12.0,
        "carbs_grams": 15.0,
        "fiber_grams": 3.0,
        "sodium_mg": 200,
        "sugar_grams": 2.0
      }},
      "serving_size": {{
        "description": "1 medium piece (150g)",
        "weight_grams": 150
      }}
    }}
  ],
  "analysis_confidence": 0.80,
  "total_nutrition": {{
    "calories": 150,
    "fat_grams": 8.5,
    "protein_grams": 12.0,
    "carbs_grams": 15.0,
    "fiber_grams": 3.0,
    "sodium_mg": 200,
    "sugar_grams": 2.0
  }},
  "notes": "Optional context about the analysis",
  "timestamp": "{timestamp}"
}}

CONFIDENCE SCORING:
{confidence_bands}

NUTRITIONAL ESTIMATION GUIDELINES:
- Use USDA food database values as reference when possible
- Account for cooking methods (fried foods have higher calories/fat)
- Consider visible ingredients and preparation style
- For multiple food items, provide individual analysis for each
- Include total_nutrition summing all items if multiple foods present
- Estimate portion sizes based on visual cues (plate size, utensils, hand comparison)

COMMON FOODS REFERENCE:
{reference_foods}

Remember: Respond with JSON only, no other text."""


def build_system_prompt(now: Optional[datetime] = None) -> str:
    """Build the system prompt.

    Args:
        now: Time shown in the example timestamp (defaults to current UTC).
            Illustrative only; nothing reads it back.

    Returns:
        System prompt text
    """
    example_time = now or datetime.now(timezone.utc)
    return _SYSTEM_PROMPT_TEMPLATE.format(
        timestamp=example_time.isoformat(),
        confidence_bands="\n".join(f"- {band}: {meaning}" for band, meaning in CONFIDENCE_BANDS),
        reference_foods="\n".join(_format_reference_food(food) for food in REFERENCE_FOODS),
    )


# ═══════════════════════════════════════════════════════════
# USER PROMPT (dynamic)
# ═══════════════════════════════════════════════════════════

_BASE_USER_PROMPT = "Analyze this food image and provide nutritional estimates."

_BASIC_INSTRUCTIONS = (
    "Focus on main macronutrients (calories, fat, protein, carbs) and basic serving size."
)

_DETAILED_INSTRUCTIONS = (
    "Please provide detailed nutritional breakdown including micronutrients if "
    "identifiable, cooking method considerations, and detailed portion size analysis."
)


def build_user_prompt(detail_level: Union[DetailLevel, str] = DetailLevel.BASIC) -> str:
    """Build the user instruction for the requested detail level.

    Args:
        detail_level: basic or detailed

    Returns:
        User prompt text

    Raises:
        ValueError: If detail_level is not a DetailLevel value
    """
    if DetailLevel(detail_level) is DetailLevel.DETAILED:
        return f"{_BASE_USER_PROMPT} {_DETAILED_INSTRUCTIONS}"

    return f"{_BASE_USER_PROMPT} {_BASIC_INSTRUCTIONS}"


# ═══════════════════════════════════════════════════════════
# HELPER: Build complete message array for the provider
# ═══════════════════════════════════════════════════════════


def build_image_data_url(submission: ImageSubmission) -> str:
    """Inline the base64 payload as a data URL."""
    return f"data:{submission.image_type};base64,{submission.image_data}"


def build_vision_messages(
    system_prompt: str, user_prompt: str, submission: ImageSubmission
) -> List[Dict[str, Any]]:
    """Build the chat message array for one analysis.

    A system message followed by a single user turn: the image block
    first, then the text instruction.

    Args:
        system_prompt: Output of build_system_prompt()
        user_prompt: Output of build_user_prompt()
        submission: Image to analyze

    Returns:
        List of message dicts for the chat completions API
    """
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": build_image_data_url(submission)}},
                {"type": "text", "text": user_prompt},
            ],
        },
    ]


# ═══════════════════════════════════════════════════════════
# CHAT CLIENT INSTRUCTIONS (served as an MCP prompt)
# ═══════════════════════════════════════════════════════════

FOOD_PHOTO_ASSISTANT_PROMPT = """You are a helpful AI assistant with access to a food nutrition analysis tool called "analyze_food_image".

CRITICAL: You MUST use the analyze_food_image tool whenever you see an image in the conversation.

When you see ANY image in the message content:
1. IMMEDIATELY call the analyze_food_image tool BEFORE any other response
2. For the tool parameters use:
   - image_data: the base64 data of the image (remove the data URI prefix if present)
   - image_type: the media type ('image/jpeg', 'image/png', 'image/webp' or 'image/gif'); assume 'image/jpeg' if unknown
   - detail_level: 'basic' (unless the user specifically requests detailed analysis)

For food-related images:
1. ALWAYS use the analyze_food_image tool first
2. Wait for the tool results
3. Present the results in a clear, user-friendly format
4. Highlight key nutritional facts like calories, macronutrients, and any notable health information

For non-food images, still use the tool - it will report low confidence if no food is visible.

Always be encouraging and educational about nutrition and healthy eating."""
