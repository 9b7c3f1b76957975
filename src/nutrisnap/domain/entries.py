"""Domain models for food entries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MacroNutrients:
    """Calories and macro grams for a meal."""

    calories: int
    protein: int
    carbs: int
    fats: int


@dataclass(frozen=True)
class FoodAnalysis(MacroNutrients):
    """Nutrient estimate returned by the analysis gateway."""

    name: str
    analysis: str


@dataclass(frozen=True)
class FoodEntry(FoodAnalysis):
    """A recorded meal."""

    id: str
    timestamp: int
    image_url: str | None = None
