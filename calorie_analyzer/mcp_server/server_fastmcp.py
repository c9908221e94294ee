#!/usr/bin/env python3
"""
Calorie Analyzer MCP Server (FastMCP)

Food photo nutrition estimation over the Model Context Protocol.

IMPORTANT FOR AI ASSISTANTS:
==========================
1 tool:
1. analyze_food_image(image_data, image_type, detail_level) - Photo→nutrition estimate

2 resources:
- calorie-analyzer://reference/common-foods - Reference values used by the estimator
- calorie-analyzer://schema/nutritional-analysis - JSON schema of the analysis result

1 prompt:
- food_photo_assistant - Chat instructions for driving analyze_food_image

ENUMS:
- image_type: image/jpeg, image/png, image/webp, image/gif
- detail_level: basic, detailed
"""

import json
from typing import Annotated, Optional

from fastmcp import FastMCP
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import Field

from calorie_analyzer.application.analysis_service import FoodImageAnalysisService
from calorie_analyzer.config import Settings
from calorie_analyzer.domain.analysis.models import (
    AnalysisToolResult,
    DetailLevel,
    ImageSubmission,
    NutritionalAnalysis,
)
from calorie_analyzer.domain.analysis.prompts import (
    FOOD_PHOTO_ASSISTANT_PROMPT,
    REFERENCE_FOODS,
)
from calorie_analyzer.domain.analysis.validator import (
    SUPPORTED_DETAIL_LEVELS,
    SUPPORTED_IMAGE_TYPES,
)
from calorie_analyzer.infrastructure.ai.openai_vision import OpenAIVisionInvoker
from calorie_analyzer.logging_config import configure_logging

SERVER_NAME = "CalorieAnalyzerMcpServer"
SERVER_VERSION = "1.0.0"

TOOL_NAME = "analyze_food_image"
TOOL_DESCRIPTION = "Analyze nutritional content of food from an image using AI vision"

# Initialize FastMCP
mcp = FastMCP(SERVER_NAME, version=SERVER_VERSION)

_service: Optional[FoodImageAnalysisService] = None


def build_service(settings: Settings) -> FoodImageAnalysisService:
    """Wire the analysis service from settings."""
    invoker = OpenAIVisionInvoker(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout_s,
    )
    return FoodImageAnalysisService(invoker=invoker)


def configure_service(service: Optional[FoodImageAnalysisService]) -> None:
    """Replace the service used by the tool (None resets to env-based wiring)."""
    global _service
    _service = service


def get_service() -> FoodImageAnalysisService:
    """Service used by the tool, built from the environment on first use."""
    global _service
    if _service is None:
        _service = build_service(Settings.from_env())
    return _service


async def run_analyze_food_image(
    image_data: str,
    image_type: str,
    detail_level: str = DetailLevel.BASIC.value,
) -> AnalysisToolResult:
    """Transport-independent body of the analyze_food_image tool."""
    submission = ImageSubmission(
        image_data=image_data,
        image_type=image_type,
        detail_level=detail_level,
    )
    return await get_service().analyze_food_image(submission)


# Tool: Analyze Food Image
@mcp.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
async def analyze_food_image(
    image_data: Annotated[
        str, Field(description="Raw base64 encoded image data (without data URI prefix)")
    ],
    image_type: Annotated[
        str,
        Field(
            description="MIME type of the image",
            json_schema_extra={"enum": list(SUPPORTED_IMAGE_TYPES)},
        ),
    ],
    detail_level: Annotated[
        str,
        Field(
            description="Analysis detail level (default: basic)",
            json_schema_extra={"enum": list(SUPPORTED_DETAIL_LEVELS)},
        ),
    ] = DetailLevel.BASIC.value,
) -> ToolResult:
    """🍽️ Estimate calories and macronutrients from a food photo.

    Returns a one-line summary as text content plus structured content:
    - summary: Same one-line summary
    - analysis: food_items, analysis_confidence, total_nutrition, notes, timestamp
    - error: {message, code, details} instead of analysis on failure
      → INVALID_IMAGE | IMAGE_TOO_LARGE | API_ERROR | PARSE_ERROR | VALIDATION_ERROR
    - raw_response: Raw model output (PARSE_ERROR only)
    """
    result = await run_analyze_food_image(image_data, image_type, detail_level)
    return ToolResult(
        content=[TextContent(type="text", text=result.summary)],
        structured_content=result.to_payload(),
    )


# Resource: Reference foods
@mcp.resource(
    "calorie-analyzer://reference/common-foods",
    name="common_foods",
    description="Approximate nutrition of common foods used as estimation anchors",
    mime_type="application/json",
)
def common_foods() -> str:
    return json.dumps(REFERENCE_FOODS, indent=2)


# Resource: Result schema
@mcp.resource(
    "calorie-analyzer://schema/nutritional-analysis",
    name="nutritional_analysis_schema",
    description="JSON schema of the analysis returned by analyze_food_image",
    mime_type="application/json",
)
def nutritional_analysis_schema() -> str:
    return json.dumps(NutritionalAnalysis.model_json_schema(), indent=2)


# Prompt: Chat assistant instructions
@mcp.prompt(
    name="food_photo_assistant",
    description="System instructions for a chat assistant that analyzes shared food photos",
)
def food_photo_assistant() -> str:
    return FOOD_PHOTO_ASSISTANT_PROMPT


def main() -> None:
    """Run the MCP server with the configured transport."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)
    configure_service(build_service(settings))

    if settings.mcp_transport == "stdio":
        mcp.run()
    else:
        mcp.run(transport=settings.mcp_transport, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
