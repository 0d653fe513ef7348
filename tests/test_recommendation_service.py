"""Tests for meal and day composition."""

import asyncio

import pytest

from dining_planner.config import ConfigurationError
from dining_planner.domain.menu import FoodRecord
from dining_planner.domain.nutrition import FoodWithNutrition, NutritionEstimate
from dining_planner.domain.preferences import RecommendationGoals, Taste
from dining_planner.services.recommendations import (
    ComposerError,
    RecommendationService,
    build_day_prompt,
    build_meal_prompt,
    format_menu,
)
from tests.conftest import FakeStructuredClient, day_response, meal_response


def _item(name: str, calories: int | None = 250) -> FoodWithNutrition:
    estimate = None
    if calories is not None:
        estimate = NutritionEstimate.from_raw(
            calories=calories, protein=20, carbs=30, fat=8
        )
    return FoodWithNutrition(food=FoodRecord(name=name), estimate=estimate)


def _service(
    client: FakeStructuredClient | None, enforce_variety: bool = True
) -> RecommendationService:
    return RecommendationService(
        client=client, model="gpt-test", enforce_variety=enforce_variety
    )


def test_compose_meal_recomputes_totals() -> None:
    client = FakeStructuredClient()
    client.queue("meal_plan", meal_response("Chicken", "Rice", calories=300))

    plan = asyncio.run(
        _service(client).compose_meal(
            [_item("Chicken"), _item("Rice")], RecommendationGoals(), ["chicken"]
        )
    )

    assert [item.name for item in plan.meal_plan] == ["Chicken", "Rice"]
    assert plan.totals.calories == 600
    assert plan.totals.protein == 40
    assert plan.reasoning == "Balanced plate."


def test_compose_meal_rejects_schema_mismatch() -> None:
    client = FakeStructuredClient()
    client.queue("meal_plan", {"mealPlan": [{"name": "Chicken"}]})

    with pytest.raises(ComposerError):
        asyncio.run(
            _service(client).compose_meal([_item("Chicken")], RecommendationGoals(), [])
        )


def test_compose_meal_rejects_empty_plan() -> None:
    client = FakeStructuredClient()
    client.queue("meal_plan", meal_response())

    with pytest.raises(ComposerError):
        asyncio.run(
            _service(client).compose_meal([_item("Chicken")], RecommendationGoals(), [])
        )


def test_compose_meal_wraps_transport_errors() -> None:
    client = FakeStructuredClient()
    client.queue("meal_plan", TimeoutError("slow"))

    with pytest.raises(ComposerError):
        asyncio.run(
            _service(client).compose_meal([_item("Chicken")], RecommendationGoals(), [])
        )


def test_compose_meal_with_no_items_skips_request() -> None:
    client = FakeStructuredClient()

    with pytest.raises(ComposerError):
        asyncio.run(_service(client).compose_meal([], RecommendationGoals(), []))

    assert client.calls == []


def test_unconfigured_composer_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        asyncio.run(
            _service(None).compose_meal([_item("Chicken")], RecommendationGoals(), [])
        )


def test_compose_day_recomputes_day_totals() -> None:
    client = FakeStructuredClient()
    client.queue("day_plan", day_response(("Eggs",), ("Burger", "Fries"), ("Pasta",)))

    day = asyncio.run(
        _service(client).compose_day(
            [_item("Eggs")],
            [_item("Burger"), _item("Fries")],
            [_item("Pasta")],
            RecommendationGoals(),
            [],
        )
    )

    assert day.lunch.totals.calories == 600
    assert day.day_totals.calories == 1200
    assert day.day_totals.protein == 80


def test_compose_day_rejects_repeated_items() -> None:
    client = FakeStructuredClient()
    client.queue("day_plan", day_response(("Eggs",), ("chicken",), ("Chicken",)))

    with pytest.raises(ComposerError, match="Chicken"):
        asyncio.run(
            _service(client).compose_day(
                [_item("Eggs")],
                [_item("Chicken")],
                [_item("Chicken")],
                RecommendationGoals(),
                [],
            )
        )

@pytest.mark.parametrize("missing", ["dinner", "dayTotals"])
def test_compose_day_rejects_schema_mismatch(missing: str) -> None:
    response = day_response(("Eggs",), ("Burger",), ("Pasta",))
    response.pop(missing)
    client = FakeStructuredClient()
    client.queue("day_plan", response)

    with pytest.raises(ComposerError):
        asyncio.run(
            _service(client).compose_day(
                [_item("Eggs")],
                [_item("Burger")],
                [_item("Pasta")],
                RecommendationGoals(),
                [],
            )
        )



def test_compose_day_allows_repeats_when_not_enforced() -> None:
    client = FakeStructuredClient()
    client.queue("day_plan", day_response(("Eggs",), ("Chicken",), ("Chicken",)))

    day = asyncio.run(
        _service(client, enforce_variety=False).compose_day(
            [_item("Eggs")],
            [_item("Chicken")],
            [_item("Chicken")],
            RecommendationGoals(),
            [],
        )
    )

    assert day.repeated_items() == ["Chicken"]


def test_compose_day_accepts_empty_meal() -> None:
    client = FakeStructuredClient()
    client.queue("day_plan", day_response(("Eggs",), ("Salad",), ()))

    day = asyncio.run(
        _service(client).compose_day(
            [_item("Eggs")], [_item("Salad")], [], RecommendationGoals(), []
        )
    )

    assert day.dinner.meal_plan == []
    assert day.dinner.totals.calories == 0


def test_format_menu_marks_unknown_nutrition() -> None:
    text = format_menu([_item("Soup", calories=None), _item("Bread", calories=120)])

    assert "1. Soup (serving: 1 serving) - nutrition unknown" in text
    assert "2. Bread (serving: 1 serving) - 120 cal, 20g protein" in text
    assert format_menu([]) == "(No items available)"


def test_meal_prompt_reflects_taste_and_likes() -> None:
    goals = RecommendationGoals(
        daily_calories=2500, daily_protein=180, taste=Taste.TASTY
    )

    prompt = build_meal_prompt([_item("Tacos")], goals, ["tacos", "curry"])

    assert "Daily calorie target: 2500 cal" in prompt
    assert "Daily protein target: 180g" in prompt
    assert "prioritize these HEAVILY" in prompt
    assert "tacos, curry" in prompt
    assert "Dietary restrictions: none" in prompt


def test_day_prompt_lists_each_menu() -> None:
    prompt = build_day_prompt(
        [_item("Eggs")], [], [_item("Pasta")], RecommendationGoals(), []
    )

    assert "=== BREAKFAST MENU ===\n1. Eggs" in prompt
    assert "=== LUNCH MENU ===\n(No items available)" in prompt
    assert "=== DINNER MENU ===\n1. Pasta" in prompt
    assert "Preferred/liked items" not in prompt
