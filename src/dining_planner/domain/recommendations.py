"""Models for composed meal plans."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dining_planner.domain.menu import MealType, cache_key
from dining_planner.domain.nutrition import round_whole

_MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


class _Macros(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    calories: int
    protein: int
    carbs: int
    fat: int

    @field_validator(*_MACRO_FIELDS, mode="before")
    @classmethod
    def _round(cls, value: object) -> object:
        if isinstance(value, float):
            return round_whole(value)
        return value


class PlannedItem(_Macros):
    """A food with a human-readable quantity and scaled macros."""

    name: str
    quantity: str


class NutritionTotals(_Macros):
    """Summed macros for a meal or a day."""

    @classmethod
    def of(cls, rows: list[_Macros]) -> "NutritionTotals":
        """Sum macros across line items or meal totals."""
        return cls(
            calories=sum(row.calories for row in rows),
            protein=sum(row.protein for row in rows),
            carbs=sum(row.carbs for row in rows),
            fat=sum(row.fat for row in rows),
        )


class MealPlan(BaseModel):
    """One recommended meal with extras."""

    model_config = ConfigDict(populate_by_name=True)

    meal_plan: list[PlannedItem] = Field(alias="mealPlan")
    totals: NutritionTotals = Field(alias="mealPlanTotals")
    reasoning: str | None = Field(default=None, alias="mealPlanReasoning")
    extras: list[PlannedItem] = Field(default_factory=list)


class DayPlan(BaseModel):
    """Breakfast, lunch and dinner composed together."""

    model_config = ConfigDict(populate_by_name=True)

    breakfast: MealPlan
    lunch: MealPlan
    dinner: MealPlan
    day_totals: NutritionTotals = Field(alias="dayTotals")

    def meals(self) -> dict[MealType, MealPlan]:
        """Return the meals keyed by meal type, in serving order."""
        return {
            MealType.BREAKFAST: self.breakfast,
            MealType.LUNCH: self.lunch,
            MealType.DINNER: self.dinner,
        }

    def repeated_items(self) -> list[str]:
        """Return main-plan item names used in more than one meal."""
        seen: set[str] = set()
        repeated: dict[str, str] = {}
        for meal in self.meals().values():
            keys_in_meal = {cache_key(item.name): item.name for item in meal.meal_plan}
            for key, name in keys_in_meal.items():
                if key in seen:
                    repeated.setdefault(key, name)
            seen.update(keys_in_meal)
        return list(repeated.values())
