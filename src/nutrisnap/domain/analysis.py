"""Validated shape of an analysis response."""

from pydantic import BaseModel, ConfigDict, Field


class AnalysisPayload(BaseModel):
    """Structured output expected from the analysis provider."""

    model_config = ConfigDict(strict=True)

    name: str
    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    carbs: int = Field(ge=0)
    fats: int = Field(ge=0)
    analysis: str
