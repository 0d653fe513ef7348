"""Domain models for the daily digest."""

from dataclasses import dataclass
from datetime import date

from dining_planner.domain.nutrition import FoodWithNutrition
from dining_planner.domain.recommendations import DayPlan


@dataclass(frozen=True)
class DayMenus:
    """Available foods for each meal of one day; failed legs are empty."""

    breakfast: list[FoodWithNutrition]
    lunch: list[FoodWithNutrition]
    dinner: list[FoodWithNutrition]

    def is_empty(self) -> bool:
        """Return True when no meal has any available food."""
        return not (self.breakfast or self.lunch or self.dinner)


@dataclass(frozen=True)
class DigestPayload:
    """A rendered day recommendation ready for delivery."""

    recipient: str
    subject: str
    html: str
    target_date: date
    day_plan: DayPlan | None

    @property
    def is_fallback(self) -> bool:
        """Return True when the digest carries no recommendation."""
        return self.day_plan is None
