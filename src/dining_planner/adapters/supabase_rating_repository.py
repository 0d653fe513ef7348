"""Supabase repository for food ratings."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from dining_planner.domain.ratings import Rating
from dining_planner.services.ratings import RatingRepository


@dataclass
class SupabaseRatingRepository(RatingRepository):
    """Supabase implementation for per-user like/dislike ratings."""

    client: Client

    def list_ratings(self, user_id: UUID) -> dict[str, Rating]:
        """Return the user's ratings keyed by normalized food name."""
        response = (
            self.client.table("food_ratings")
            .select("food_name, rating")
            .eq("user_id", str(user_id))
            .execute()
        )
        ratings: dict[str, Rating] = {}
        for row in response.data or []:
            try:
                rating = Rating.parse(row.get("rating"))
            except ValueError:
                continue
            if rating is not Rating.NEUTRAL:
                ratings[str(row["food_name"])] = rating
        return ratings

    def upsert_rating(self, user_id: UUID, key: str, rating: Rating) -> None:
        """Insert or replace a rating."""
        self.client.table("food_ratings").upsert(
            {"user_id": str(user_id), "food_name": key, "rating": rating.value},
            on_conflict="user_id,food_name",
        ).execute()

    def delete_rating(self, user_id: UUID, key: str) -> None:
        """Delete a rating so the food becomes neutral."""
        self.client.table("food_ratings").delete().eq("user_id", str(user_id)).eq(
            "food_name", key
        ).execute()
