"""User preference domain models."""

from dataclasses import dataclass, field, fields
from enum import StrEnum

from dining_planner.domain.nutrition import (
    HIGH_CALORIE,
    LOW_CALORIE,
    LOW_FAT,
    NUTRIENT_RICH,
    PROTEIN_RICH,
)


class Taste(StrEnum):
    """How strongly liked items outweigh nutrition targets."""

    BALANCED = "balanced"
    TASTY = "tasty"
    STRICT = "strict"

    @classmethod
    def parse(cls, raw: str | None) -> "Taste":
        """Parse a taste value, defaulting to BALANCED for unknown input."""
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.BALANCED


@dataclass(frozen=True)
class RecommendationGoals:
    """Daily targets and constraints for meal plans."""

    daily_calories: float = 2000
    daily_protein: float = 150
    fitness_goal: str = ""
    appetite: str = "medium"
    taste: Taste = Taste.BALANCED
    restrictions: str = ""


@dataclass(frozen=True)
class DietaryFilters:
    """Dietary filters; every active filter must pass."""

    vegetarian: bool = False
    vegan: bool = False
    eggless: bool = False
    gluten_free: bool = False
    no_dairy: bool = False


_NUTRITION_FILTER_TAGS = {
    "high_calorie": HIGH_CALORIE,
    "low_calorie": LOW_CALORIE,
    "protein_rich": PROTEIN_RICH,
    "low_fat": LOW_FAT,
    "nutrient_rich": NUTRIENT_RICH,
}


@dataclass(frozen=True)
class NutritionFilters:
    """Nutrition tag filters; any selected tag is enough."""

    high_calorie: bool = False
    low_calorie: bool = False
    protein_rich: bool = False
    low_fat: bool = False
    nutrient_rich: bool = False

    def selected_tags(self) -> frozenset[str]:
        """Return the estimate tags selected by the active filters."""
        return frozenset(
            tag
            for name, tag in _NUTRITION_FILTER_TAGS.items()
            if getattr(self, name)
        )


@dataclass(frozen=True)
class UserPreferences:
    """Saved goals and browsing filters for a user."""

    goals: RecommendationGoals = field(default_factory=RecommendationGoals)
    dietary: DietaryFilters = field(default_factory=DietaryFilters)
    nutrition: NutritionFilters = field(default_factory=NutritionFilters)


def filter_flags(filters: DietaryFilters | NutritionFilters) -> dict[str, bool]:
    """Return filter flags keyed by field name."""
    return {item.name: bool(getattr(filters, item.name)) for item in fields(filters)}
