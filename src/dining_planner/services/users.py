"""User-related business logic."""

from dataclasses import dataclass
from typing import Protocol

from dining_planner.domain.models import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user with an email address, if present."""

    def create_user(self, email: str, name: str | None) -> UserRecord:
        """Create and return a new user record."""

    def update_name(self, email: str, name: str | None) -> UserRecord:
        """Update and return the user's display name."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository

    def ensure_user(self, email: str, name: str | None = None) -> UserRecord:
        """Ensure a user exists for the email and return it."""
        normalized = email.strip().lower()
        existing = self.repository.get_by_email(normalized)
        if existing is None:
            return self.repository.create_user(normalized, name)
        if name is not None and name != existing.name:
            return self.repository.update_name(normalized, name)
        return existing
