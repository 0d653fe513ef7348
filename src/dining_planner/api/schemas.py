"""Request and response bodies for the HTTP API."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from dining_planner.domain.menu import (
    DEFAULT_SERVING_SIZE,
    CatalogCategory,
    FoodRecord,
    MealType,
    MenuEntry,
    SectionTitle,
)
from dining_planner.domain.nutrition import NutritionEstimate
from dining_planner.domain.preferences import (
    DietaryFilters,
    NutritionFilters,
    RecommendationGoals,
    Taste,
    UserPreferences,
    filter_flags,
)
from dining_planner.domain.ratings import Rating


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GoalsBody(_CamelModel):
    """Daily targets submitted with a recommendation or preference save."""

    daily_calories: float = Field(default=2000, ge=0, alias="dailyCalories")
    daily_protein: float = Field(default=150, ge=0, alias="dailyProtein")
    fitness_goal: str = Field(default="", alias="fitnessGoal")
    appetite: str = "medium"
    taste: str = Taste.BALANCED.value
    restrictions: str | None = ""

    def to_domain(self) -> RecommendationGoals:
        """Convert to domain goals."""
        return RecommendationGoals(
            daily_calories=self.daily_calories,
            daily_protein=self.daily_protein,
            fitness_goal=self.fitness_goal,
            appetite=self.appetite or "medium",
            taste=Taste.parse(self.taste),
            restrictions=self.restrictions or "",
        )


class DietaryFiltersBody(_CamelModel):
    vegetarian: bool = False
    vegan: bool = False
    eggless: bool = False
    gluten_free: bool = Field(default=False, alias="glutenFree")
    no_dairy: bool = Field(default=False, alias="noDairy")


class NutritionFiltersBody(_CamelModel):
    high_calorie: bool = Field(default=False, alias="highCalorie")
    low_calorie: bool = Field(default=False, alias="lowCalorie")
    protein_rich: bool = Field(default=False, alias="proteinRich")
    low_fat: bool = Field(default=False, alias="lowFat")
    nutrient_rich: bool = Field(default=False, alias="nutrientRich")


class PreferencesBody(GoalsBody):
    """Saved goals plus browsing filters."""

    filters: DietaryFiltersBody = Field(default_factory=DietaryFiltersBody)
    nutritional_filters: NutritionFiltersBody = Field(
        default_factory=NutritionFiltersBody, alias="nutritionalFilters"
    )

    def to_preferences(self) -> UserPreferences:
        """Convert to domain preferences."""
        return UserPreferences(
            goals=self.to_domain(),
            dietary=DietaryFilters(**self.filters.model_dump()),
            nutrition=NutritionFilters(**self.nutritional_filters.model_dump()),
        )

    @classmethod
    def from_preferences(cls, preferences: UserPreferences) -> "PreferencesBody":
        """Build the response body for stored preferences."""
        goals = preferences.goals
        return cls(
            daily_calories=goals.daily_calories,
            daily_protein=goals.daily_protein,
            fitness_goal=goals.fitness_goal,
            appetite=goals.appetite,
            taste=goals.taste.value,
            restrictions=goals.restrictions,
            filters=DietaryFiltersBody(**filter_flags(preferences.dietary)),
            nutritional_filters=NutritionFiltersBody(
                **filter_flags(preferences.nutrition)
            ),
        )


class SavePreferencesRequest(BaseModel):
    preferences: PreferencesBody


class NutritionItemBody(_CamelModel):
    name: str = Field(min_length=1)
    serving_size: str = Field(default=DEFAULT_SERVING_SIZE, alias="servingSize")
    ingredients: str | None = None

    def to_domain(self) -> FoodRecord:
        """Convert to a food record."""
        return FoodRecord(
            name=self.name,
            serving_size=self.serving_size or DEFAULT_SERVING_SIZE,
            ingredients=self.ingredients or None,
        )


class NutritionRequest(BaseModel):
    items: list[NutritionItemBody] = []


class RecommendRequest(_CamelModel):
    target_date: date = Field(alias="date")
    meal_type: MealType = Field(alias="mealType")
    goals: GoalsBody | None = None


class RecommendDayRequest(_CamelModel):
    target_date: date = Field(alias="date")
    goals: GoalsBody | None = None


class RatingRequest(_CamelModel):
    food_name: str = Field(min_length=1, alias="foodName")
    rating: Rating


class EmailRequest(_CamelModel):
    opted_in: bool = Field(alias="optedIn")


def serialize_food(food: FoodRecord) -> dict[str, object]:
    """Return the JSON shape of a food record."""
    return {
        "id": food.id,
        "name": food.name,
        "key": food.key,
        "servingSize": food.serving_size,
        "ingredients": food.ingredients,
        "icons": sorted(food.icons),
    }


def serialize_entry(entry: MenuEntry) -> dict[str, object]:
    """Return the JSON shape of a menu entry."""
    if isinstance(entry, SectionTitle):
        return {"isSectionTitle": True, "text": entry.text}
    return {"isSectionTitle": False, "food": serialize_food(entry)}


def serialize_catalog(
    catalog: list[CatalogCategory],
    estimates: dict[str, NutritionEstimate],
    visual: dict[str, Rating],
) -> list[dict[str, object]]:
    """Return catalog categories with per-item rating and nutrition."""
    return [
        {
            "category": category.category,
            "items": [
                {
                    **serialize_food(food),
                    "rating": visual.get(food.key, Rating.NEUTRAL).value,
                    "nutrition": (
                        estimates[food.key].as_dict() if food.key in estimates else None
                    ),
                }
                for food in category.items
            ],
        }
        for category in catalog
    ]
