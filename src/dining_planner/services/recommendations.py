"""Meal and full-day plan composition using a reasoning model."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from dining_planner.config import ConfigurationError
from dining_planner.domain.nutrition import FoodWithNutrition
from dining_planner.domain.preferences import RecommendationGoals, Taste
from dining_planner.domain.recommendations import DayPlan, MealPlan, NutritionTotals
from dining_planner.services.structured_output import StructuredOutputClient

_logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_MACROS = ("calories", "protein", "carbs", "fat")

_PLANNED_ITEM_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "quantity": {"type": "string"},
        **{macro: {"type": "number"} for macro in _MACROS},
    },
    "required": ["name", "quantity", *_MACROS],
    "additionalProperties": False,
}

_TOTALS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {macro: {"type": "number"} for macro in _MACROS},
    "required": list(_MACROS),
    "additionalProperties": False,
}

MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "mealPlan": {"type": "array", "items": _PLANNED_ITEM_SCHEMA},
        "mealPlanTotals": _TOTALS_SCHEMA,
        "mealPlanReasoning": {"type": "string"},
        "extras": {"type": "array", "items": _PLANNED_ITEM_SCHEMA},
    },
    "required": ["mealPlan", "mealPlanTotals", "mealPlanReasoning", "extras"],
    "additionalProperties": False,
}

_DAY_MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "mealPlan": {"type": "array", "items": _PLANNED_ITEM_SCHEMA},
        "mealPlanTotals": _TOTALS_SCHEMA,
        "extras": {"type": "array", "items": _PLANNED_ITEM_SCHEMA},
    },
    "required": ["mealPlan", "mealPlanTotals", "extras"],
    "additionalProperties": False,
}

DAY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "breakfast": _DAY_MEAL_SCHEMA,
        "lunch": _DAY_MEAL_SCHEMA,
        "dinner": _DAY_MEAL_SCHEMA,
        "dayTotals": _TOTALS_SCHEMA,
    },
    "required": ["breakfast", "lunch", "dinner", "dayTotals"],
    "additionalProperties": False,
}

_PLAN_RULES = """Rules:
- Quantities should be in common terms (cups, pieces, bowls, slices) not grams
- You can suggest multiple servings of the same item (e.g. "2 pieces" of chicken)
- Scale the nutrition numbers to match the suggested quantity
- The "extras" list should have about 4 items: add-ons that complement the meal \
plan AND alternative items the student could eat instead to hit similar calorie \
and protein targets
- Respect dietary restrictions strictly
- Only use items from the menus above
- Round all numbers to whole values"""

_VARIETY_RULES = """Rules for variety:
- Each meal must feature DIFFERENT main items; do not repeat the same protein or \
main dish across meals
- Distribute calories and protein across the day to hit the daily totals (a \
lighter breakfast and heavier lunch or dinner is fine)
- If an item appears in more than one meal's menu, use it in the mealPlan of at \
most ONE meal
- Make each meal feel like a distinct, complete meal
- A meal whose menu has no items gets an empty mealPlan and extras"""


class ComposerError(RuntimeError):
    """Raised when no trustworthy recommendation could be produced."""


@dataclass
class RecommendationService:
    """Service that composes meal plans from available menu items."""

    client: StructuredOutputClient | None
    model: str
    reasoning_effort: str | None = None
    store: bool = False
    timeout_seconds: float = 90.0
    enforce_variety: bool = True

    def ensure_configured(self) -> StructuredOutputClient:
        """Return the composer client, raising ConfigurationError if unset."""
        if self.client is None:
            raise ConfigurationError("Recommendation service is not configured")
        return self.client

    async def compose_meal(
        self,
        available: list[FoodWithNutrition],
        goals: RecommendationGoals,
        liked_names: list[str],
    ) -> MealPlan:
        """Compose one meal targeting about a third of the daily goals."""
        client = self.ensure_configured()
        if not available:
            raise ComposerError("No menu items available for a recommendation")
        raw = await self._request(
            client,
            build_meal_prompt(available, goals, liked_names),
            "meal_plan",
            MEAL_SCHEMA,
        )
        plan = _validate(MealPlan, raw)
        if not plan.meal_plan:
            raise ComposerError("Recommendation service returned an empty meal plan")
        return _reconcile_meal(plan, "meal")

    async def compose_day(  # noqa: PLR0913
        self,
        breakfast: list[FoodWithNutrition],
        lunch: list[FoodWithNutrition],
        dinner: list[FoodWithNutrition],
        goals: RecommendationGoals,
        liked_names: list[str],
    ) -> DayPlan:
        """Compose breakfast, lunch and dinner as one varied day."""
        client = self.ensure_configured()
        if not (breakfast or lunch or dinner):
            raise ComposerError("No menu items available for a day plan")
        raw = await self._request(
            client,
            build_day_prompt(breakfast, lunch, dinner, goals, liked_names),
            "day_plan",
            DAY_SCHEMA,
        )
        day = _reconcile_day(_validate(DayPlan, raw))
        repeated = day.repeated_items()
        if repeated:
            if self.enforce_variety:
                raise ComposerError(
                    "Day plan repeats items across meals: " + ", ".join(repeated)
                )
            _logger.warning("Day plan repeats items across meals: %s", repeated)
        return day

    async def _request(
        self,
        client: StructuredOutputClient,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await client.complete(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    prompt=prompt,
                    schema_name=schema_name,
                    schema=schema,
                    timeout=self.timeout_seconds,
                )
        except Exception as exc:
            _logger.warning("Recommendation request %s failed: %r", schema_name, exc)
            raise ComposerError("Recommendation service request failed") from exc


def _validate(model: type[_ModelT], raw: dict[str, object]) -> _ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ComposerError(
            f"Recommendation did not match the expected schema ({exc.error_count()}"
            " errors)"
        ) from exc


def _reconcile_meal(plan: MealPlan, label: str) -> MealPlan:
    """Replace reported meal totals with the sum of the line items."""
    computed = NutritionTotals.of(plan.meal_plan)
    if computed == plan.totals:
        return plan
    _logger.info(
        "Recomputed %s totals: reported=%s computed=%s",
        label,
        plan.totals.model_dump(),
        computed.model_dump(),
    )
    return plan.model_copy(update={"totals": computed})


def _reconcile_day(day: DayPlan) -> DayPlan:
    meals = {
        meal_type.value: _reconcile_meal(meal, meal_type.value)
        for meal_type, meal in day.meals().items()
    }
    computed = NutritionTotals.of([meal.totals for meal in meals.values()])
    if computed != day.day_totals:
        _logger.info(
            "Recomputed day totals: reported=%s computed=%s",
            day.day_totals.model_dump(),
            computed.model_dump(),
        )
    return day.model_copy(update={**meals, "day_totals": computed})


def _number(value: float) -> str:
    return f"{value:g}"


def format_menu(items: list[FoodWithNutrition]) -> str:
    """Render available items as a numbered list with per-serving nutrition."""
    if not items:
        return "(No items available)"
    lines: list[str] = []
    for index, item in enumerate(items, start=1):
        food = item.food
        estimate = item.estimate
        if estimate is None:
            nutrition = "nutrition unknown"
        else:
            nutrition = (
                f"{estimate.calories} cal, {estimate.protein}g protein, "
                f"{estimate.carbs}g carbs, {estimate.fat}g fat"
            )
        lines.append(f"{index}. {food.name} (serving: {food.serving_size}) - {nutrition}")
    return "\n".join(lines)


def _profile(goals: RecommendationGoals, liked_names: list[str], appetite: str) -> str:
    taste_note = ""
    liked_weight = "when possible"
    if goals.taste is Taste.TASTY:
        taste_note = (
            " (IMPORTANT: strongly prioritize items that taste great and that "
            "students love; nutrition is secondary to enjoyment)"
        )
        liked_weight = "HEAVILY"
    elif goals.taste is Taste.STRICT:
        taste_note = (
            " (IMPORTANT: hit the calorie and protein targets as closely as "
            "possible; enjoyment is secondary)"
        )
        liked_weight = "only when they fit the targets"
    lines = [
        "Student's profile:",
        f"- Daily calorie target: {_number(goals.daily_calories)} cal",
        f"- Daily protein target: {_number(goals.daily_protein)}g",
        f"- Goal: {goals.fitness_goal or 'general health'}",
        f"- {appetite}: {goals.appetite or 'medium'}",
        f"- Taste preference: {goals.taste.value}{taste_note}",
        f"- Dietary restrictions: {goals.restrictions or 'none'}",
    ]
    if liked_names:
        lines.append(
            f"- Preferred/liked items (prioritize these {liked_weight}): "
            + ", ".join(liked_names)
        )
    return "\n".join(lines)


def build_meal_prompt(
    available: list[FoodWithNutrition],
    goals: RecommendationGoals,
    liked_names: list[str],
) -> str:
    """Build the single-meal prompt."""
    return (
        "You are a meal planning assistant for a college dining hall. A student "
        "wants recommendations for THIS MEAL based on their goals. Here are the "
        "available menu items with their per-serving nutrition:\n\n"
        f"{format_menu(available)}\n\n"
        f"{_profile(goals, liked_names, 'Appetite for this meal')}\n\n"
        "Disliked items have already been removed from the list above, so all "
        "items shown are acceptable.\n\n"
        "Since this is ONE meal of the day, aim for roughly 1/3 of the daily "
        "targets unless the student's appetite suggests otherwise.\n\n"
        "Return a mealPlan (main items), mealPlanTotals, a 1-2 sentence "
        "mealPlanReasoning and extras.\n\n"
        f"{_PLAN_RULES}"
    )


def build_day_prompt(  # noqa: PLR0913
    breakfast: list[FoodWithNutrition],
    lunch: list[FoodWithNutrition],
    dinner: list[FoodWithNutrition],
    goals: RecommendationGoals,
    liked_names: list[str],
) -> str:
    """Build the full-day prompt with one menu per meal."""
    return (
        "You are a meal planning assistant for a college dining hall. A student "
        "wants a FULL DAY meal plan (breakfast, lunch AND dinner) that is varied "
        "and balanced across the whole day. Each meal has a DIFFERENT menu of "
        "available items.\n\n"
        f"=== BREAKFAST MENU ===\n{format_menu(breakfast)}\n\n"
        f"=== LUNCH MENU ===\n{format_menu(lunch)}\n\n"
        f"=== DINNER MENU ===\n{format_menu(dinner)}\n\n"
        f"{_profile(goals, liked_names, 'General appetite')}\n\n"
        f"{_VARIETY_RULES}\n\n"
        "For each meal, return a mealPlan (main items), mealPlanTotals and "
        "extras (about 4 add-ons or alternative swaps), plus dayTotals.\n\n"
        f"{_PLAN_RULES}"
    )
