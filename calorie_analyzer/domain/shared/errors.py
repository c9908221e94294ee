"""
Domain exceptions.

Typed exceptions for explicit error handling. Every failure in the analysis
pipeline is raised as an AnalysisFailure at the point where it is detected
and converted into a tool result by the analysis service.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from calorie_analyzer.domain.analysis.models import AnalysisError, AnalysisErrorCode


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    """

    pass


# ═══════════════════════════════════════════════════════════
# ANALYSIS EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class AnalysisFailure(DomainError):
    """
    Food image analysis failed.

    Carries the structured AnalysisError that ends up in the tool result.

    Example:
        >>> raise AnalysisFailure(
        ...     AnalysisErrorCode.IMAGE_TOO_LARGE,
        ...     "Image size exceeds 5MB limit",
        ...     details="Image size: 7.0MB, limit: 5MB",
        ... )
    """

    def __init__(
        self,
        code: AnalysisErrorCode,
        message: str,
        details: Optional[str] = None,
        raw_response: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.raw_response = raw_response

    def to_error(self) -> AnalysisError:
        """Structured form of this failure."""
        return AnalysisError(message=self.message, code=self.code, details=self.details)


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ProviderErrorKind(str, Enum):
    """Why the vision model provider call failed."""

    AUTHENTICATION = "AUTHENTICATION"  # Missing or rejected credentials
    RATE_LIMIT = "RATE_LIMIT"  # Throttled by the provider
    CONNECTION = "CONNECTION"  # Network failure
    TIMEOUT = "TIMEOUT"  # No response within the client timeout
    BAD_REQUEST = "BAD_REQUEST"  # Provider rejected the request
    SERVER = "SERVER"  # Provider-side 5xx
    EMPTY_RESPONSE = "EMPTY_RESPONSE"  # Call succeeded without text output
    UNKNOWN = "UNKNOWN"


class ProviderError(AnalysisFailure):
    """
    Vision model provider call failed.

    Always reported as API_ERROR. The kind is kept so callers and logs can
    tell throttling apart from auth or network faults.

    Example:
        >>> raise ProviderError(
        ...     ProviderErrorKind.RATE_LIMIT,
        ...     "Rate limit reached for gpt-4o",
        ... )
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(AnalysisErrorCode.API_ERROR, message, details=details)
        self.kind = kind
