"""
OpenAI vision client - implements VisionModelInvoker port.

Sends one image plus instructions through the chat completions API and
returns the raw text. Single attempt: the SDK's built-in retry is disabled
and failures surface immediately as ProviderError (API_ERROR).
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Optional, Tuple

import openai
import structlog
from openai import AsyncOpenAI

from calorie_analyzer.domain.analysis.models import ImageSubmission
from calorie_analyzer.domain.analysis.prompts import build_vision_messages
from calorie_analyzer.domain.shared.errors import ProviderError, ProviderErrorKind

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion

logger = structlog.get_logger(__name__)

DEFAULT_MODEL = "gpt-4o"
MAX_OUTPUT_TOKENS = 1000


def classify_provider_error(error: BaseException) -> ProviderErrorKind:
    """Map an SDK exception to a ProviderErrorKind."""
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderErrorKind.AUTHENTICATION
    if isinstance(error, openai.RateLimitError):
        return ProviderErrorKind.RATE_LIMIT
    # APITimeoutError subclasses APIConnectionError
    if isinstance(error, openai.APITimeoutError):
        return ProviderErrorKind.TIMEOUT
    if isinstance(error, openai.APIConnectionError):
        return ProviderErrorKind.CONNECTION
    if isinstance(error, openai.InternalServerError):
        return ProviderErrorKind.SERVER
    if isinstance(error, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return ProviderErrorKind.BAD_REQUEST
    return ProviderErrorKind.UNKNOWN


class OpenAIVisionInvoker:
    """
    OpenAI vision adapter implementing VisionModelInvoker.

    The image travels inline as a base64 data URL, followed by the text
    instruction, in a single user turn after the system prompt.

    A fresh SDK client is opened and closed per call unless one is
    injected, so nothing stays connected between invocations.

    Example:
        >>> invoker = OpenAIVisionInvoker(api_key="sk-...")
        >>> text = await invoker.invoke(system_prompt, user_prompt, submission)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        max_tokens: int = MAX_OUTPUT_TOKENS,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize invoker.

        Args:
            api_key: OpenAI API key. A missing key is reported per call as
                API_ERROR, not at construction.
            model: Vision-capable chat model
            timeout: Request timeout in seconds
            max_tokens: Output token budget, sized for a compact JSON object
            client: Optional pre-configured AsyncOpenAI client (for testing)
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client = client

    async def invoke(
        self, system_prompt: str, user_prompt: str, submission: ImageSubmission
    ) -> str:
        """
        Run one vision completion.

        Args:
            system_prompt: Fixed instruction block
            user_prompt: Per-request instruction
            submission: Validated image submission

        Returns:
            First text segment of the response

        Raises:
            ProviderError: Missing credentials, any SDK failure, or empty output
        """
        if self._client is None and not self.api_key:
            raise ProviderError(
                ProviderErrorKind.AUTHENTICATION,
                "OPENAI_API_KEY not configured",
            )

        messages = build_vision_messages(system_prompt, user_prompt, submission)
        start_time = time.time()

        logger.info(
            "Sending request to vision model",
            model=self.model,
            image_type=submission.image_type,
            image_data_length=len(submission.image_data),
            max_tokens=self.max_tokens,
        )

        client, owned = self._acquire_client()
        try:
            completion: ChatCompletion = await client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=self.max_tokens,
            )
        except openai.OpenAIError as e:
            raise self._provider_error(classify_provider_error(e), e) from e
        except Exception as e:
            raise self._provider_error(ProviderErrorKind.UNKNOWN, e) from e
        finally:
            if owned:
                await client.close()

        text = _first_text(completion)
        processing_time_ms = int((time.time() - start_time) * 1000)

        if not text:
            logger.error(
                "Empty response from vision model",
                model=self.model,
                processing_time_ms=processing_time_ms,
            )
            raise ProviderError(
                ProviderErrorKind.EMPTY_RESPONSE,
                "Empty response from vision model",
                details=f"finish_reason: {_finish_reason(completion)}",
            )

        usage = getattr(completion, "usage", None)
        logger.info(
            "Received response from vision model",
            model=self.model,
            response_length=len(text),
            finish_reason=_finish_reason(completion),
            prompt_tokens=getattr(usage, "prompt_tokens", 0) if usage else 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) if usage else 0,
            processing_time_ms=processing_time_ms,
        )
        return text

    def _acquire_client(self) -> Tuple[AsyncOpenAI, bool]:
        """Return (client, owned). Owned clients are closed after the call."""
        if self._client is not None:
            return self._client, False
        client = AsyncOpenAI(
            api_key=self.api_key,
            timeout=self.timeout,
            max_retries=0,
        )
        return client, True

    def _provider_error(self, kind: ProviderErrorKind, error: BaseException) -> ProviderError:
        logger.error(
            "Vision model call failed",
            model=self.model,
            kind=kind.value,
            error_type=type(error).__name__,
            error=str(error),
        )
        message = str(error) or type(error).__name__
        return ProviderError(kind, message, details=f"{type(error).__name__}: {message}")


def _first_text(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None)
    if not choices:
        return None
    content = choices[0].message.content
    if not isinstance(content, str):
        return None
    return content if content.strip() else None


def _finish_reason(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None)
    if not choices:
        return None
    return getattr(choices[0], "finish_reason", None)
