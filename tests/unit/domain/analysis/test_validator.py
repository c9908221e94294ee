"""
Tests for submission validation.
"""

import pytest

from calorie_analyzer.domain.analysis.models import AnalysisErrorCode, ImageSubmission
from calorie_analyzer.domain.analysis.validator import (
    MAX_IMAGE_BYTES,
    estimate_decoded_size,
    validate_submission,
)
from calorie_analyzer.domain.shared.errors import AnalysisFailure


def _submission(image_data: str = "aGVsbG8=", image_type: str = "image/jpeg", **kwargs) -> ImageSubmission:
    return ImageSubmission(image_data=image_data, image_type=image_type, **kwargs)


class TestEstimateDecodedSize:
    """Test size estimate."""

    def test_three_quarters_of_encoded_length(self) -> None:
        assert estimate_decoded_size("A" * 8) == 6
        assert estimate_decoded_size("") == 0

    def test_padding_is_not_subtracted(self) -> None:
        """Test estimate is approximate: 'aGk=' decodes to 2 bytes."""
        assert estimate_decoded_size("aGk=") == 3


class TestValidateSubmission:
    """Test validate_submission."""

    @pytest.mark.parametrize("image_type", ["image/jpeg", "image/png", "image/webp", "image/gif"])
    def test_supported_types_pass(self, image_type: str) -> None:
        validate_submission(_submission(image_type=image_type))

    def test_detailed_level_passes(self) -> None:
        validate_submission(_submission(detail_level="detailed"))

    @pytest.mark.parametrize("image_type", ["image/bmp", "jpeg", "IMAGE/JPEG", ""])
    def test_unknown_type_is_validation_error(self, image_type: str) -> None:
        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(image_type=image_type))

        assert exc_info.value.code == AnalysisErrorCode.VALIDATION_ERROR
        assert "image/jpeg" in exc_info.value.details

    def test_unknown_detail_level_is_validation_error(self) -> None:
        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(detail_level="verbose"))

        assert exc_info.value.code == AnalysisErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("image_data", ["", "   \n"])
    def test_empty_payload_is_invalid_image(self, image_data: str) -> None:
        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(image_data=image_data))

        assert exc_info.value.code == AnalysisErrorCode.INVALID_IMAGE

    def test_data_uri_prefix_is_invalid_image(self) -> None:
        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(image_data="data:image/jpeg;base64,aGVsbG8="))

        assert exc_info.value.code == AnalysisErrorCode.INVALID_IMAGE

    def test_exactly_at_limit_passes(self) -> None:
        """Test 5MB estimate is accepted (limit is exclusive)."""
        encoded = "A" * (MAX_IMAGE_BYTES * 4 // 3)
        assert estimate_decoded_size(encoded) <= MAX_IMAGE_BYTES

        validate_submission(_submission(image_data=encoded))

    def test_just_over_limit_fails(self) -> None:
        encoded = "A" * (MAX_IMAGE_BYTES * 4 // 3 + 4)

        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(image_data=encoded))

        assert exc_info.value.code == AnalysisErrorCode.IMAGE_TOO_LARGE

    def test_oversized_reports_size_and_limit(self, oversized_submission: ImageSubmission) -> None:
        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(oversized_submission)

        failure = exc_info.value
        assert failure.code == AnalysisErrorCode.IMAGE_TOO_LARGE
        assert failure.message == "Image size exceeds 5MB limit"
        assert failure.details == "Image size: 7.0MB, limit: 5MB"

    def test_size_rounded_to_two_decimals(self) -> None:
        # 6.5MB * 4/3 encoded characters
        encoded = "A" * int(6.5 * 1024 * 1024 * 4 / 3)

        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(_submission(image_data=encoded))

        assert exc_info.value.details == "Image size: 6.5MB, limit: 5MB"

    def test_type_checked_before_size(self, oversized_submission: ImageSubmission) -> None:
        """Test an unsupported type wins over an oversized payload."""
        submission = _submission(image_data=oversized_submission.image_data, image_type="image/tiff")

        with pytest.raises(AnalysisFailure) as exc_info:
            validate_submission(submission)

        assert exc_info.value.code == AnalysisErrorCode.VALIDATION_ERROR
