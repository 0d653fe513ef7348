"""Supabase repository for user preferences."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from dining_planner.domain.preferences import (
    DietaryFilters,
    NutritionFilters,
    RecommendationGoals,
    Taste,
    UserPreferences,
    filter_flags,
)
from dining_planner.services.preferences import PreferenceRepository


@dataclass
class SupabasePreferenceRepository(PreferenceRepository):
    """Supabase implementation for saved goals and filters."""

    client: Client

    def get_preferences(self, user_id: UUID) -> UserPreferences | None:
        """Return stored preferences for a user, if any."""
        response = (
            self.client.table("user_preferences")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_preferences(response.data[0])

    def upsert_preferences(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Insert or replace the preferences row for a user."""
        goals = preferences.goals
        self.client.table("user_preferences").upsert(
            {
                "user_id": str(user_id),
                "daily_calories": goals.daily_calories,
                "daily_protein": goals.daily_protein,
                "fitness_goal": goals.fitness_goal,
                "appetite": goals.appetite,
                "taste": goals.taste.value,
                "restrictions": goals.restrictions,
                **filter_flags(preferences.dietary),
                **filter_flags(preferences.nutrition),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()


def _flags(
    row: dict[str, object], filters: type[DietaryFilters | NutritionFilters]
) -> dict[str, bool]:
    return {name: bool(row.get(name)) for name in filter_flags(filters())}


def _parse_preferences(row: dict[str, object]) -> UserPreferences:
    defaults = RecommendationGoals()
    goals = RecommendationGoals(
        daily_calories=float(row.get("daily_calories") or defaults.daily_calories),
        daily_protein=float(row.get("daily_protein") or defaults.daily_protein),
        fitness_goal=str(row.get("fitness_goal") or ""),
        appetite=str(row.get("appetite") or defaults.appetite),
        taste=Taste.parse(row.get("taste")),
        restrictions=str(row.get("restrictions") or ""),
    )
    return UserPreferences(
        goals=goals,
        dietary=DietaryFilters(**_flags(row, DietaryFilters)),
        nutrition=NutritionFilters(**_flags(row, NutritionFilters)),
    )
