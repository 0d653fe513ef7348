"""Supabase repository for cached nutrition estimates."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from dining_planner.domain.nutrition import NutritionEstimate
from dining_planner.services.nutrition import NutritionCacheRepository


@dataclass
class SupabaseNutritionCacheRepository(NutritionCacheRepository):
    """Supabase implementation of the shared nutrition cache."""

    client: Client

    def get_estimates(self, keys: list[str]) -> dict[str, NutritionEstimate]:
        """Return cached estimates for the keys that are present."""
        if not keys:
            return {}
        response = (
            self.client.table("nutrition_cache")
            .select("food_name, calories, protein, carbs, fat, tags")
            .in_("food_name", keys)
            .execute()
        )
        return {
            str(row["food_name"]): NutritionEstimate.from_raw(
                calories=row["calories"],
                protein=row["protein"],
                carbs=row["carbs"],
                fat=row["fat"],
                tags=row.get("tags") or (),
            )
            for row in response.data or []
        }

    def upsert_estimate(self, key: str, estimate: NutritionEstimate) -> None:
        """Insert or replace the cached estimate for a key."""
        self.client.table("nutrition_cache").upsert(
            {
                "food_name": key,
                **estimate.as_dict(),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="food_name",
        ).execute()
