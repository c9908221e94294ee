"""
Shared fixtures for calorie analyzer tests.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from calorie_analyzer.application.analysis_service import FoodImageAnalysisService
from calorie_analyzer.domain.analysis.models import ImageSubmission


# ═══════════════════════════════════════════════════════════
# RAW MODEL OUTPUT FIXTURES
# ═══════════════════════════════════════════════════════════

APPLE_RESPONSE = (
    '{"food_items":[{"name":"Apple","confidence":0.9,'
    '"nutrition":{"calories":80,"fat_grams":0.3,"protein_grams":0.4},'
    '"serving_size":{"description":"1 medium"}}],"analysis_confidence":0.85}'
)

FIXED_NOW = datetime(2025, 3, 14, 12, 30, 45, 123000, tzinfo=timezone.utc)
FIXED_TIMESTAMP = "2025-03-14T12:30:45.123Z"


def make_item(
    name: str,
    calories: float,
    fat: float = 1.0,
    protein: float = 1.0,
    confidence: float = 0.8,
    **optional: Any,
) -> dict[str, Any]:
    """Build one wire-format food item."""
    nutrition = {"calories": calories, "fat_grams": fat, "protein_grams": protein}
    nutrition.update(optional)
    return {
        "name": name,
        "confidence": confidence,
        "nutrition": nutrition,
        "serving_size": {"description": "1 portion"},
    }


@pytest.fixture
def apple_response() -> str:
    """Single-item model output (no total_nutrition, no timestamp)."""
    return APPLE_RESPONSE


@pytest.fixture
def two_item_response() -> str:
    """Two items, 150 + 200 calories, no total_nutrition."""
    return json.dumps(
        {
            "food_items": [
                make_item("Toast", 150, fat=2.0, protein=5.0),
                make_item("Scrambled eggs", 200, fat=15.0, protein=13.0),
            ],
            "analysis_confidence": 0.75,
        }
    )


# ═══════════════════════════════════════════════════════════
# CLOCK / SUBMISSION FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def small_submission() -> ImageSubmission:
    """Tiny valid JPEG submission."""
    return ImageSubmission(image_data="/9j/4AAQSkZJRgABAQ==", image_type="image/jpeg")


@pytest.fixture
def oversized_submission() -> ImageSubmission:
    """Payload whose estimated decoded size is 7MB."""
    encoded_length = 7 * 1024 * 1024 * 4 // 3
    return ImageSubmission(image_data="A" * encoded_length, image_type="image/png")


# ═══════════════════════════════════════════════════════════
# SERVICE FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def mock_invoker() -> AsyncMock:
    """Vision invoker returning the apple response."""
    invoker = AsyncMock()
    invoker.invoke = AsyncMock(return_value=APPLE_RESPONSE)
    return invoker


@pytest.fixture
def service(mock_invoker: AsyncMock, fixed_clock: Callable[[], datetime]) -> FoodImageAnalysisService:
    """Analysis service with mocked invoker and fixed clock."""
    return FoodImageAnalysisService(invoker=mock_invoker, clock=fixed_clock)
