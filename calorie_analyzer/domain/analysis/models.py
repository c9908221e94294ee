"""
Nutritional analysis domain models.

Wire and domain shape of a food photo analysis. Field names follow the JSON
contract the vision model is prompted to produce (snake_case).
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImageFormat(str, Enum):
    """Image MIME types accepted by the analyzer."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    WEBP = "image/webp"
    GIF = "image/gif"


class DetailLevel(str, Enum):
    """Verbosity requested from the vision model. Affects prompt wording only."""

    BASIC = "basic"
    DETAILED = "detailed"


class AnalysisErrorCode(str, Enum):
    """Failure taxonomy. Assigned where the failure is first detected."""

    INVALID_IMAGE = "INVALID_IMAGE"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    API_ERROR = "API_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class ImageSubmission(BaseModel):
    """
    One image to analyze.

    Tags are kept as plain text so unknown values reach the request
    validator and come back as VALIDATION_ERROR instead of a schema error.

    Attributes:
        image_data: Raw base64 payload (no data URI prefix)
        image_type: MIME type, one of ImageFormat
        detail_level: One of DetailLevel (default basic)

    Example:
        >>> submission = ImageSubmission(
        ...     image_data="iVBORw0KGgo...",
        ...     image_type="image/png",
        ... )
        >>> submission.detail_level
        'basic'
    """

    model_config = ConfigDict(frozen=True)

    image_data: str = Field(..., description="Base64-encoded image data")
    image_type: str = Field(..., description="MIME type of the image")
    detail_level: str = Field(DetailLevel.BASIC.value, description="basic | detailed")


class NutritionalInfo(BaseModel):
    """
    Nutrient estimate for one item or for the whole plate.

    Only calories, fat and protein are required. The model may omit the
    rest, so consumers must tolerate None. Values must be finite; NaN and
    infinity are rejected.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    calories: float = Field(..., description="Energy in kcal")
    fat_grams: float = Field(..., description="Total fat in g")
    protein_grams: float = Field(..., description="Protein in g")
    carbs_grams: Optional[float] = Field(None, description="Carbohydrates in g")
    fiber_grams: Optional[float] = Field(None, description="Fiber in g")
    sodium_mg: Optional[float] = Field(None, description="Sodium in mg")
    sugar_grams: Optional[float] = Field(None, description="Sugar in g")


class ServingSize(BaseModel):
    """Portion the nutrient figures refer to."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    description: str = Field(..., description="Free text, e.g. '1 medium piece'")
    weight_grams: Optional[float] = Field(None, description="Weight in g")
    volume_ml: Optional[float] = Field(None, description="Volume in ml")


class FoodItem(BaseModel):
    """
    Single food item identified in the photo.

    confidence is nominally 0.0-1.0 but comes straight from the model and
    is not range-checked.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    name: str = Field(..., description="Food name")
    confidence: float = Field(..., description="Identification confidence (0-1)")
    nutrition: NutritionalInfo
    serving_size: ServingSize


class NutritionalAnalysis(BaseModel):
    """
    Parsed and validated analysis of one photo.

    Attributes:
        food_items: Identified items, in the order the model listed them
        analysis_confidence: Overall confidence (0-1, not range-checked)
        total_nutrition: Plate totals; derived from items when the model omits it
        notes: Free text caveats from the model
        timestamp: ISO-8601 time of analysis; assigned when the model omits it

    Example:
        >>> analysis = NutritionalAnalysis(
        ...     food_items=[
        ...         FoodItem(
        ...             name="Apple",
        ...             confidence=0.9,
        ...             nutrition=NutritionalInfo(
        ...                 calories=80, fat_grams=0.3, protein_grams=0.4
        ...             ),
        ...             serving_size=ServingSize(description="1 medium"),
        ...         )
        ...     ],
        ...     analysis_confidence=0.85,
        ...     timestamp="2025-01-01T12:00:00.000Z",
        ... )
        >>> analysis.item_count()
        1
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    food_items: List[FoodItem] = Field(..., min_length=1, description="Identified food items")
    analysis_confidence: float = Field(..., description="Overall confidence (0-1)")
    total_nutrition: Optional[NutritionalInfo] = Field(None, description="Plate totals")
    notes: Optional[str] = Field(None, description="Additional context or warnings")
    timestamp: str = Field(..., description="ISO-8601 timestamp of the analysis")

    def item_count(self) -> int:
        """Number of identified food items."""
        return len(self.food_items)

    def total_calories(self) -> float:
        """Plate calories, falling back to the item sum when no totals exist."""
        if self.total_nutrition is not None:
            return self.total_nutrition.calories
        return sum_calories(self.food_items)


class AnalysisError(BaseModel):
    """Structured failure returned instead of an analysis."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    message: str = Field(..., description="Human-readable error message")
    code: AnalysisErrorCode = Field(..., description="Failure category")
    details: Optional[str] = Field(None, description="Diagnostic text")


class AnalysisToolResult(BaseModel):
    """
    Uniform result of analyze_food_image.

    summary is always non-empty. Exactly one of analysis / error is set;
    callers only need to check whether error is present.
    """

    model_config = ConfigDict(frozen=True)

    summary: str = Field(..., min_length=1, description="One-line human-readable summary")
    analysis: Optional[NutritionalAnalysis] = None
    error: Optional[AnalysisError] = None
    raw_response: Optional[str] = Field(None, description="Raw model output (parse failures)")

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "AnalysisToolResult":
        if (self.analysis is None) == (self.error is None):
            raise ValueError("Exactly one of analysis or error must be set")
        return self

    @property
    def succeeded(self) -> bool:
        """True when no error is attached."""
        return self.error is None

    def to_payload(self) -> dict:
        """Serialize for tool transports, dropping absent fields."""
        return self.model_dump(mode="json", exclude_none=True)


def sum_calories(items: List[FoodItem]) -> float:
    """Sum item calories in sequence order with plain addition."""
    total: float = 0
    for item in items:
        total += item.nutrition.calories
    return total
