"""Catalog grouping, filtering and rating-based ordering."""

from collections.abc import Mapping

from dining_planner.domain.menu import (
    DEFAULT_CATEGORY,
    DISLIKED_CATEGORY,
    CatalogCategory,
    FoodRecord,
    MenuEntry,
    SectionTitle,
)
from dining_planner.domain.nutrition import NutritionEstimate
from dining_planner.domain.preferences import DietaryFilters, NutritionFilters
from dining_planner.domain.ratings import Rating

VEGAN_ICON = "Vegan"
VEGETARIAN_ICON = "Vegetarian"
EGG_ICON = "Eggs Allergen"
GLUTEN_ICON = "Gluten"
DAIRY_ICON = "Milk"


def passes_dietary_filters(food: FoodRecord, filters: DietaryFilters) -> bool:
    """Return True when the food satisfies every active dietary filter."""
    if filters.vegan and not food.has_icon(VEGAN_ICON):
        return False
    if filters.vegetarian and not (
        food.has_icon(VEGETARIAN_ICON) or food.has_icon(VEGAN_ICON)
    ):
        return False
    if filters.eggless and food.has_icon(EGG_ICON):
        return False
    if filters.gluten_free and food.has_icon(GLUTEN_ICON):
        return False
    return not (filters.no_dairy and food.has_icon(DAIRY_ICON))


def passes_nutrition_filters(
    food: FoodRecord,
    filters: NutritionFilters,
    nutrition_by_key: Mapping[str, NutritionEstimate],
) -> bool:
    """Return True when no tag is selected or the food has any selected tag."""
    selected = filters.selected_tags()
    if not selected:
        return True
    estimate = nutrition_by_key.get(food.key)
    if estimate is None:
        return False
    return bool(estimate.tags & selected)


def build_catalog(
    entries: list[MenuEntry],
    dietary: DietaryFilters,
    nutrition_filters: NutritionFilters,
    nutrition_by_key: Mapping[str, NutritionEstimate],
    rating_by_key: Mapping[str, Rating],
) -> list[CatalogCategory]:
    """Group a raw menu into filtered, preference-ordered categories.

    Foods fall under the most recent section title ("Other" before the first
    one); a repeated title reuses its earlier category. Liked foods move to the
    front of their category without disturbing relative order. Disliked foods
    are collected into a trailing "Disliked Items" category.
    """
    groups: dict[str, list[FoodRecord]] = {}
    disliked: list[FoodRecord] = []
    current = DEFAULT_CATEGORY

    for entry in entries:
        if isinstance(entry, SectionTitle):
            current = entry.text
            continue
        if not passes_dietary_filters(entry, dietary):
            continue
        if not passes_nutrition_filters(entry, nutrition_filters, nutrition_by_key):
            continue
        rating = rating_by_key.get(entry.key, Rating.NEUTRAL)
        if rating is Rating.DISLIKE:
            disliked.append(entry)
            continue
        groups.setdefault(current, []).append(entry)

    catalog = [
        CatalogCategory(category=category, items=_liked_first(items, rating_by_key))
        for category, items in groups.items()
    ]
    if disliked:
        catalog.append(CatalogCategory(category=DISLIKED_CATEGORY, items=disliked))
    return catalog


def _liked_first(
    items: list[FoodRecord], rating_by_key: Mapping[str, Rating]
) -> list[FoodRecord]:
    liked = [item for item in items if rating_by_key.get(item.key) is Rating.LIKE]
    rest = [item for item in items if rating_by_key.get(item.key) is not Rating.LIKE]
    return liked + rest


def eligible_foods(
    foods: list[FoodRecord], rating_by_key: Mapping[str, Rating]
) -> list[FoodRecord]:
    """Drop disliked foods and repeated names, keeping menu order."""
    seen: set[str] = set()
    eligible: list[FoodRecord] = []
    for food in foods:
        if food.key in seen or rating_by_key.get(food.key) is Rating.DISLIKE:
            continue
        seen.add(food.key)
        eligible.append(food)
    return eligible
