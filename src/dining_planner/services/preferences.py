"""User preference service."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from dining_planner.domain.preferences import RecommendationGoals, UserPreferences

_logger = logging.getLogger(__name__)


class PreferenceRepository(Protocol):
    """Persistence interface for user preferences."""

    def get_preferences(self, user_id: UUID) -> UserPreferences | None:
        """Return stored preferences, if any."""

    def upsert_preferences(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Insert or replace a user's preferences."""


@dataclass
class PreferenceService:
    """Service for user goals and browsing filters."""

    repository: PreferenceRepository

    def get(self, user_id: UUID) -> UserPreferences:
        """Return the user's preferences, or defaults when none are saved."""
        return self.repository.get_preferences(user_id) or UserPreferences()

    def save(self, user_id: UUID, preferences: UserPreferences) -> None:
        """Persist a user's preferences."""
        self.repository.upsert_preferences(user_id, preferences)

    def remember_goals(self, user_id: UUID, goals: RecommendationGoals) -> None:
        """Save goals used for a recommendation; failures are only logged."""
        try:
            current = self.get(user_id)
            self.save(user_id, replace(current, goals=goals))
        except Exception:
            _logger.exception("Failed to save goals for user %s", user_id)
