"""Supabase repository for digest subscriptions."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from dining_planner.domain.models import UserRecord
from dining_planner.services.digest import SubscriptionRepository


@dataclass
class SupabaseSubscriptionRepository(SubscriptionRepository):
    """Supabase implementation for email opt-in flags."""

    client: Client

    def is_subscribed(self, user_id: UUID) -> bool:
        """Return True when the user opted in."""
        response = (
            self.client.table("email_subscriptions")
            .select("opted_in")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return False
        return bool(response.data[0].get("opted_in"))

    def set_subscribed(self, user_id: UUID, opted_in: bool) -> None:
        """Insert or update the opt-in flag."""
        self.client.table("email_subscriptions").upsert(
            {
                "user_id": str(user_id),
                "opted_in": opted_in,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def list_subscribed_users(self) -> list[UserRecord]:
        """Return every opted-in user."""
        subscriptions = (
            self.client.table("email_subscriptions")
            .select("user_id")
            .eq("opted_in", True)
            .execute()
        )
        user_ids = [str(row["user_id"]) for row in subscriptions.data or []]
        if not user_ids:
            return []
        users = (
            self.client.table("users")
            .select("id, email, name")
            .in_("id", user_ids)
            .execute()
        )
        return [
            UserRecord(
                id=UUID(str(row["id"])),
                email=str(row["email"]),
                name=row.get("name"),
            )
            for row in users.data or []
        ]
