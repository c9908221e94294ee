"""
Request validation for image submissions.

Runs before any provider call. The payload is never decoded: size is
estimated from the encoded length and the format tag is trusted as declared.
"""

from __future__ import annotations

from calorie_analyzer.domain.analysis.models import (
    AnalysisErrorCode,
    DetailLevel,
    ImageFormat,
    ImageSubmission,
)
from calorie_analyzer.domain.shared.errors import AnalysisFailure

MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_IMAGE_MB = MAX_IMAGE_BYTES // (1024 * 1024)

SUPPORTED_IMAGE_TYPES = tuple(fmt.value for fmt in ImageFormat)
SUPPORTED_DETAIL_LEVELS = tuple(level.value for level in DetailLevel)


def estimate_decoded_size(encoded: str) -> float:
    """Approximate decoded byte size of a base64 payload.

    Uses the 3/4 ratio without subtracting padding, so the estimate can be
    off by up to two bytes.
    """
    return len(encoded) * 3 / 4


def validate_submission(submission: ImageSubmission) -> None:
    """Check a submission before it is sent to the vision model.

    Args:
        submission: Image to analyze

    Raises:
        AnalysisFailure: INVALID_IMAGE for an empty or data-URI payload,
            VALIDATION_ERROR for an unknown image type or detail level,
            IMAGE_TOO_LARGE when the estimated size exceeds 5MB

    Example:
        >>> validate_submission(
        ...     ImageSubmission(image_data="aGVsbG8=", image_type="image/gif")
        ... )
    """
    if not submission.image_data or not submission.image_data.strip():
        raise AnalysisFailure(
            AnalysisErrorCode.INVALID_IMAGE,
            "Image data is empty",
            details="Provide raw base64 encoded image data",
        )

    if submission.image_data.startswith("data:"):
        raise AnalysisFailure(
            AnalysisErrorCode.INVALID_IMAGE,
            "Image data must not include a data URI prefix",
            details="Strip the 'data:<type>;base64,' prefix and send the base64 payload only",
        )

    if submission.image_type not in SUPPORTED_IMAGE_TYPES:
        raise AnalysisFailure(
            AnalysisErrorCode.VALIDATION_ERROR,
            f"Unsupported image type: {submission.image_type}",
            details=f"Supported types: {', '.join(SUPPORTED_IMAGE_TYPES)}",
        )

    if submission.detail_level not in SUPPORTED_DETAIL_LEVELS:
        raise AnalysisFailure(
            AnalysisErrorCode.VALIDATION_ERROR,
            f"Unsupported detail level: {submission.detail_level}",
            details=f"Supported levels: {', '.join(SUPPORTED_DETAIL_LEVELS)}",
        )

    size_bytes = estimate_decoded_size(submission.image_data)
    if size_bytes > MAX_IMAGE_BYTES:
        size_mb = round(size_bytes / 1024 / 1024, 2)
        raise AnalysisFailure(
            AnalysisErrorCode.IMAGE_TOO_LARGE,
            f"Image size exceeds {MAX_IMAGE_MB}MB limit",
            details=f"Image size: {size_mb}MB, limit: {MAX_IMAGE_MB}MB",
        )
