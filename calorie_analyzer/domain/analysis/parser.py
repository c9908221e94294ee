"""
Parser for vision model output.

Turns the raw text returned by the model into a validated
NutritionalAnalysis, or raises PARSE_ERROR. There is no partial success:
one malformed item fails the whole response.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog
from pydantic import ValidationError

from calorie_analyzer.domain.analysis.models import (
    AnalysisErrorCode,
    FoodItem,
    NutritionalAnalysis,
    sum_calories,
)
from calorie_analyzer.domain.shared.errors import AnalysisFailure

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

PARSE_ERROR_MESSAGE = "Failed to parse nutritional analysis from AI response"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```\s*$")

_REQUIRED_NUTRIENTS = ("calories", "fat_grams", "protein_grams")
_OPTIONAL_NUTRIENTS = ("carbs_grams", "fiber_grams", "sodium_mg", "sugar_grams")


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix for UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def strip_code_fence(text: str) -> str:
    """Trim whitespace and a surrounding ```json ... ``` fence, if any."""
    return _CODE_FENCE.sub("", text.strip())


def derive_total_nutrition(items: List[FoodItem]) -> Dict[str, Any]:
    """Sum item nutrition in sequence order.

    Calories, fat and protein are always summed. Optional nutrients are
    summed only when every item reports them; otherwise they stay absent.
    """
    totals: Dict[str, Any] = {
        "calories": sum_calories(items),
        "fat_grams": _sum_field(items, "fat_grams"),
        "protein_grams": _sum_field(items, "protein_grams"),
    }
    for field in _OPTIONAL_NUTRIENTS:
        values = [getattr(item.nutrition, field) for item in items]
        if all(value is not None for value in values):
            totals[field] = _sum_values(values)
    return totals


def _sum_field(items: List[FoodItem], field: str) -> float:
    return _sum_values([getattr(item.nutrition, field) for item in items])


def _sum_values(values: List[float]) -> float:
    total: float = 0
    for value in values:
        total += value
    return total


class NutritionalAnalysisParser:
    """
    Parse and validate raw vision model output.

    Steps:
    1. Strip whitespace and an optional markdown code fence
    2. Decode JSON
    3. Require an object with a non-empty food_items list
    4. Validate every item against the wire shape
    5. Fill timestamp from the injected clock when missing
    6. Derive total_nutrition from the items when missing, or fill its
       missing calories, fat or protein from the item sums

    Confidences and nutrient magnitudes are passed through unclamped and
    out-of-range confidences are only logged. NaN and infinity are PARSE_ERROR.

    Example:
        >>> parser = NutritionalAnalysisParser(clock=lambda: datetime(2025, 1, 1))
        >>> analysis = parser.parse('{"food_items": [...], "analysis_confidence": 0.8}')
        >>> analysis.timestamp
        '2025-01-01T00:00:00.000Z'
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        """
        Initialize parser.

        Args:
            clock: Source of the current time for missing timestamps
        """
        self._clock = clock or utc_now

    def parse(self, raw_text: str) -> NutritionalAnalysis:
        """
        Parse raw model output.

        Args:
            raw_text: Text returned by the vision model

        Returns:
            Validated NutritionalAnalysis with timestamp and totals filled in

        Raises:
            AnalysisFailure: PARSE_ERROR for invalid JSON, a missing or empty
                food_items list, or items that do not match the schema.
                details always include the raw text.
        """
        cleaned = strip_code_fence(raw_text)

        try:
            data = json.loads(cleaned)
        except (ValueError, RecursionError) as e:
            raise self._failure(f"Parse error: {type(e).__name__}: {e}", raw_text) from e

        if not isinstance(data, dict):
            raise self._failure(
                "Invalid response format: expected a JSON object", raw_text
            )

        raw_items = data.get("food_items")
        if not isinstance(raw_items, list):
            raise self._failure(
                "Invalid response format: missing or invalid food_items", raw_text
            )
        if not raw_items:
            raise self._failure("Invalid response format: food_items is empty", raw_text)

        try:
            items = [FoodItem.model_validate(raw_item) for raw_item in raw_items]
        except ValidationError as e:
            raise self._failure(f"Invalid food item: {e}", raw_text) from e

        payload = dict(data)
        if not payload.get("timestamp"):
            payload["timestamp"] = format_timestamp(self._clock())
        totals = payload.get("total_nutrition")
        if totals is None:
            payload["total_nutrition"] = derive_total_nutrition(items)
        elif isinstance(totals, dict):
            payload["total_nutrition"] = self._complete_totals(totals, items)

        try:
            analysis = NutritionalAnalysis.model_validate(payload)
        except ValidationError as e:
            raise self._failure(f"Invalid analysis: {e}", raw_text) from e

        self._warn_out_of_range(analysis)
        return analysis

    @staticmethod
    def _complete_totals(totals: Dict[str, Any], items: List[FoodItem]) -> Dict[str, Any]:
        """Fill required macros the model left out of its totals with item sums."""
        missing = [field for field in _REQUIRED_NUTRIENTS if totals.get(field) is None]
        if not missing:
            return totals
        derived = derive_total_nutrition(items)
        logger.info("Completing partial total_nutrition", derived_fields=missing)
        return {**totals, **{field: derived[field] for field in missing}}

    def _failure(self, reason: str, raw_text: str) -> AnalysisFailure:
        logger.warning("Model response rejected", reason=reason, raw_length=len(raw_text))
        return AnalysisFailure(
            AnalysisErrorCode.PARSE_ERROR,
            PARSE_ERROR_MESSAGE,
            details=f"{reason}\nRaw response: {raw_text}",
            raw_response=raw_text,
        )

    def _warn_out_of_range(self, analysis: NutritionalAnalysis) -> None:
        if not 0.0 <= analysis.analysis_confidence <= 1.0:
            logger.warning(
                "Analysis confidence out of range",
                confidence=analysis.analysis_confidence,
            )
        for item in analysis.food_items:
            if not 0.0 <= item.confidence <= 1.0:
                logger.warning(
                    "Item confidence out of range",
                    item=item.name,
                    confidence=item.confidence,
                )
