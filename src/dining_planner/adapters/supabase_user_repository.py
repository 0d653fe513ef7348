"""Supabase-backed user repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from dining_planner.domain.models import UserRecord
from dining_planner.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user for an email address, if present."""
        response = (
            self.client.table("users")
            .select("id, email, name")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_user(response.data[0])
        return None

    def create_user(self, email: str, name: str | None) -> UserRecord:
        """Create a new user row and return it."""
        response = (
            self.client.table("users").insert({"email": email, "name": name}).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _parse_user(response.data[0])

    def update_name(self, email: str, name: str | None) -> UserRecord:
        """Update the display name for a user and return the row."""
        response = (
            self.client.table("users")
            .update({"name": name})
            .eq("email", email)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update user in Supabase")
        return _parse_user(response.data[0])


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        email=str(row["email"]),
        name=row.get("name"),
    )
