"""Nutrition domain models."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from dining_planner.domain.menu import FoodRecord

HIGH_CALORIE = "High calorie"
LOW_CALORIE = "Low calorie"
PROTEIN_RICH = "Protein rich"
LOW_FAT = "Low fat"
NUTRIENT_RICH = "Nutrient-rich"

NUTRITION_TAGS = (HIGH_CALORIE, LOW_CALORIE, PROTEIN_RICH, LOW_FAT, NUTRIENT_RICH)


def round_whole(value: float) -> int:
    """Round half away from zero to a whole unit."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class NutritionEstimate:
    """Approximate per-serving nutrition for a food."""

    calories: int
    protein: int
    carbs: int
    fat: int
    tags: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_raw(
        cls,
        *,
        calories: float,
        protein: float,
        carbs: float,
        fat: float,
        tags: Iterable[str] = (),
    ) -> "NutritionEstimate":
        """Build an estimate with whole, non-negative values and known tags."""
        return cls(
            calories=max(0, round_whole(calories)),
            protein=max(0, round_whole(protein)),
            carbs=max(0, round_whole(carbs)),
            fat=max(0, round_whole(fat)),
            tags=frozenset(tag for tag in tags if tag in NUTRITION_TAGS),
        )

    def as_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "tags": [tag for tag in NUTRITION_TAGS if tag in self.tags],
        }


@dataclass(frozen=True)
class FoodWithNutrition:
    """A food paired with its estimate, if one has been resolved."""

    food: FoodRecord
    estimate: NutritionEstimate | None


def attach_nutrition(
    foods: list[FoodRecord], estimates: dict[str, NutritionEstimate]
) -> list[FoodWithNutrition]:
    """Pair foods with resolved estimates; unresolved foods keep ``None``."""
    return [
        FoodWithNutrition(food=food, estimate=estimates.get(food.key)) for food in foods
    ]
