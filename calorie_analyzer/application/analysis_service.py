"""
Food image analysis service.

Single entry point behind the analyze_food_image tool: validates the
submission, prompts the vision model, parses its answer and shapes a
uniform result. Never raises.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Optional

import structlog

from calorie_analyzer.domain.analysis.models import (
    AnalysisErrorCode,
    AnalysisToolResult,
    ImageSubmission,
    NutritionalAnalysis,
)
from calorie_analyzer.domain.analysis.parser import Clock, NutritionalAnalysisParser
from calorie_analyzer.domain.analysis.ports import VisionModelInvoker
from calorie_analyzer.domain.analysis.prompts import build_system_prompt, build_user_prompt
from calorie_analyzer.domain.analysis.validator import validate_submission
from calorie_analyzer.domain.shared.errors import (
    AnalysisFailure,
    ProviderError,
    ProviderErrorKind,
)

logger = structlog.get_logger(__name__)


def format_number(value: float) -> str:
    """Render whole-number floats without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_percent(confidence: float) -> str:
    """0.9 -> '90%'. Never raises, even when the scaled value overflows."""
    return f"{confidence * 100:.0f}%"


def build_success_summary(analysis: NutritionalAnalysis) -> str:
    """One-line summary of a successful analysis."""
    if analysis.item_count() == 1:
        item = analysis.food_items[0]
        return (
            f'Analyzed "{item.name}": {format_number(item.nutrition.calories)} calories, '
            f"{format_number(item.nutrition.fat_grams)}g fat, "
            f"{format_number(item.nutrition.protein_grams)}g protein. "
            f"Confidence: {format_percent(item.confidence)}"
        )

    return (
        f"Analyzed {analysis.item_count()} food items with total "
        f"{format_number(analysis.total_calories())} calories. "
        f"Overall confidence: {format_percent(analysis.analysis_confidence)}"
    )


def build_error_summary(failure: AnalysisFailure) -> str:
    """One-line summary of a failure. Never empty."""
    if failure.code == AnalysisErrorCode.PARSE_ERROR:
        return f"Error: {failure.message}. The AI response could not be parsed as valid JSON."
    if failure.code == AnalysisErrorCode.API_ERROR:
        return f"Failed to analyze food image: {failure.message}"
    if failure.details:
        return f"Error: {failure.message}. {failure.details}"
    return f"Error: {failure.message}."


class FoodImageAnalysisService:
    """
    Orchestrates one food image analysis.

    Flow:
    1. Validate submission (size, type, detail level)
    2. Build system and user prompts
    3. Invoke the vision model (single attempt)
    4. Parse and validate the JSON answer
    5. Summarize

    The first failure short-circuits into an error result.

    Example:
        >>> service = FoodImageAnalysisService(invoker=OpenAIVisionInvoker(api_key="sk-..."))
        >>> result = await service.analyze_food_image(
        ...     ImageSubmission(image_data=b64, image_type="image/jpeg")
        ... )
        >>> print(result.summary)
    """

    def __init__(
        self,
        invoker: VisionModelInvoker,
        clock: Optional[Clock] = None,
        parser: Optional[NutritionalAnalysisParser] = None,
    ):
        """
        Initialize service.

        Args:
            invoker: Vision model port implementation
            clock: Time source for prompts and missing timestamps
            parser: Optional pre-built parser (defaults to one using clock)
        """
        self.invoker = invoker
        self._clock = clock
        self.parser = parser or NutritionalAnalysisParser(clock=clock)

    async def analyze_food_image(self, submission: ImageSubmission) -> AnalysisToolResult:
        """
        Analyze one food image.

        Args:
            submission: Image and options

        Returns:
            AnalysisToolResult with a summary and either analysis or error
        """
        start_time = time.time()

        logger.info(
            "analyze_food_image called",
            image_data_length=len(submission.image_data or ""),
            image_type=submission.image_type,
            detail_level=submission.detail_level,
        )

        try:
            analysis = await self._run(submission)
        except AnalysisFailure as failure:
            logger.warning(
                "Food image analysis failed",
                code=failure.code.value,
                error=failure.message,
                processing_time_ms=int((time.time() - start_time) * 1000),
            )
            return AnalysisToolResult(
                summary=build_error_summary(failure),
                error=failure.to_error(),
                raw_response=failure.raw_response,
            )

        logger.info(
            "Food image analysis complete",
            item_count=analysis.item_count(),
            total_calories=analysis.total_calories(),
            confidence=analysis.analysis_confidence,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        return AnalysisToolResult(summary=build_success_summary(analysis), analysis=analysis)

    async def _run(self, submission: ImageSubmission) -> NutritionalAnalysis:
        validate_submission(submission)

        now: Optional[datetime] = self._clock() if self._clock else None
        system_prompt = build_system_prompt(now)
        user_prompt = build_user_prompt(submission.detail_level)

        try:
            raw_text = await self.invoker.invoke(system_prompt, user_prompt, submission)
        except AnalysisFailure:
            raise
        except Exception as e:
            logger.exception("Unexpected vision invoker failure")
            raise ProviderError(
                ProviderErrorKind.UNKNOWN,
                str(e) or type(e).__name__,
                details=f"{type(e).__name__}: {e}",
            ) from e

        return self.parser.parse(raw_text)
