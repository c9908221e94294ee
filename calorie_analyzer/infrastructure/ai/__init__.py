"""Vision model provider adapters."""

from calorie_analyzer.infrastructure.ai.openai_vision import (
    OpenAIVisionInvoker,
    classify_provider_error,
)

__all__ = [
    "OpenAIVisionInvoker",
    "classify_provider_error",
]
