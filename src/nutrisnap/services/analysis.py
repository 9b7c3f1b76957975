"""Food image analysis using LLM vision providers."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrisnap.domain.analysis import AnalysisPayload
from nutrisnap.domain.entries import FoodAnalysis
from nutrisnap.domain.errors import GatewayError

MISSING_API_KEY_MESSAGE = (
    "Analysis API key is not configured. Set ANALYSIS_API_KEY to enable analysis."
)

ANALYSIS_PROMPT = (
    "Analyze this food image. Identify the main dish and estimate its calories "
    "and macronutrients (protein, carbs, fats) in grams. "
    "Give a brief nutritional comment (analysis) about the quality of the meal. "
    "If the image is not food, return zero values and say so in 'analysis'."
)

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Short dish name"},
        "calories": {
            "type": "integer",
            "minimum": 0,
            "description": "Estimated calories (kcal)",
        },
        "protein": {"type": "integer", "minimum": 0, "description": "Protein (g)"},
        "carbs": {"type": "integer", "minimum": 0, "description": "Carbohydrates (g)"},
        "fats": {"type": "integer", "minimum": 0, "description": "Fats (g)"},
        "analysis": {"type": "string", "description": "Brief nutritional comment"},
    },
    "required": ["name", "calories", "protein", "carbs", "fats", "analysis"],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    """Interface for a provider that analyzes food images."""

    async def analyze(  # noqa: PLR0913
        self,
        *,
        api_key: str,
        model: str,
        image_base64: str,
        mime_type: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return the provider's structured answer."""


@dataclass
class AnalysisService:
    """Gateway that calls a provider and validates its answer.

    Every failure, from a missing key to a malformed response, surfaces as
    ``GatewayError`` with a message fit to show the user.
    """

    client: AnalysisClient
    model: str
    api_key: str | None = None

    async def analyze(self, image_bytes: bytes, mime_type: str) -> FoodAnalysis:
        """Estimate the nutrients of the food in an image."""
        if not self.api_key:
            raise GatewayError(MISSING_API_KEY_MESSAGE)
        if not image_bytes:
            raise GatewayError("The image is empty.")

        try:
            raw = await self.client.analyze(
                api_key=self.api_key,
                model=self.model,
                image_base64=base64.b64encode(image_bytes).decode("utf-8"),
                mime_type=mime_type,
                schema=ANALYSIS_SCHEMA,
                prompt=ANALYSIS_PROMPT,
            )
        except GatewayError:
            raise
        except Exception as exc:
            _logger.warning("Food analysis failed: model=%s error=%s", self.model, exc)
            raise GatewayError(
                str(exc) or "Failed to analyze the image. Try again."
            ) from exc

        try:
            payload = AnalysisPayload.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Malformed analysis response: %s", exc)
            raise GatewayError(
                "The analysis response was incomplete or malformed."
            ) from exc

        _logger.info(
            "Food analysis: model=%s name=%s calories=%s",
            self.model,
            payload.name,
            payload.calories,
        )
        return FoodAnalysis(
            name=payload.name,
            calories=payload.calories,
            protein=payload.protein,
            carbs=payload.carbs,
            fats=payload.fats,
            analysis=payload.analysis,
        )


def to_data_url(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Convert image bytes to a base64 data URL."""
    resolved = mime_type or detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{resolved};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
