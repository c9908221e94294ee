"""Port (interface) for vision model providers.

The analysis service depends on this protocol; the OpenAI adapter in the
infrastructure layer implements it, and tests substitute a mock.
"""

from typing import Protocol

from calorie_analyzer.domain.analysis.models import ImageSubmission


class VisionModelInvoker(Protocol):
    """
    Interface for vision model providers.

    Implementations can be:
    - OpenAI chat completions with image input
    - Mock invoker (for testing)
    """

    async def invoke(
        self, system_prompt: str, user_prompt: str, submission: ImageSubmission
    ) -> str:
        """
        Send one image plus instructions and return the model's raw text.

        Args:
            system_prompt: Fixed instruction block
            user_prompt: Per-request instruction
            submission: Validated image submission

        Returns:
            First text segment of the model response (non-empty)

        Raises:
            ProviderError: On any provider failure or empty output.
                Implementations must not retry.
        """
        ...
