"""Food rating toggles with delayed catalog reordering."""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from dining_planner.domain.menu import cache_key
from dining_planner.domain.ratings import Rating, toggle_rating

_logger = logging.getLogger(__name__)


class RatingRepository(Protocol):
    """Persistence interface for per-user food ratings."""

    def list_ratings(self, user_id: UUID) -> dict[str, Rating]:
        """Return stored like/dislike ratings keyed by cache key."""

    def upsert_rating(self, user_id: UUID, key: str, rating: Rating) -> None:
        """Insert or replace a like/dislike rating."""

    def delete_rating(self, user_id: UUID, key: str) -> None:
        """Remove a stored rating, returning the food to neutral."""


@dataclass
class RatingBoard:
    """Two views of one user's ratings.

    ``visual`` changes as soon as a rating is applied and drives styling.
    ``ordering`` catches up after ``reorder_delay_seconds`` and drives the
    catalog order, so a restyled item only moves once the delay has passed.
    """

    visual: dict[str, Rating] = field(default_factory=dict)
    ordering: dict[str, Rating] = field(default_factory=dict)
    reorder_delay_seconds: float = 0.6
    _timers: set[asyncio.TimerHandle] = field(
        default_factory=set, init=False, repr=False
    )

    @classmethod
    def from_ratings(
        cls, ratings: dict[str, Rating], reorder_delay_seconds: float
    ) -> "RatingBoard":
        """Create a settled board from stored ratings."""
        return cls(
            visual=dict(ratings),
            ordering=dict(ratings),
            reorder_delay_seconds=reorder_delay_seconds,
        )

    def rating_for(self, key: str) -> Rating:
        """Return the current (visual) rating for a key."""
        return self.visual.get(key, Rating.NEUTRAL)

    def apply(self, key: str, rating: Rating) -> None:
        """Update the visual state now and schedule the ordering update.

        Must be called from a running event loop.
        """
        if rating is Rating.NEUTRAL:
            self.visual.pop(key, None)
        else:
            self.visual[key] = rating
        snapshot = dict(self.visual)
        loop = asyncio.get_running_loop()
        timer: asyncio.TimerHandle | None = None

        def _settle() -> None:
            self.ordering = snapshot
            if timer is not None:
                self._timers.discard(timer)

        timer = loop.call_later(self.reorder_delay_seconds, _settle)
        self._timers.add(timer)

    def has_pending_reorder(self) -> bool:
        """Return True while an ordering update is scheduled."""
        return bool(self._timers)

    def cancel_pending(self) -> None:
        """Cancel scheduled ordering updates."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()


@dataclass
class RatingService:
    """Service for reading and toggling food ratings.

    Boards are held only while a reorder or a save is in flight. A settled
    board is dropped, and the next read loads the stored ratings again.
    """

    repository: RatingRepository
    reorder_delay_seconds: float = 0.6
    _boards: dict[UUID, RatingBoard] = field(default_factory=dict, init=False)
    _saving: Counter[UUID] = field(default_factory=Counter, init=False)

    def board(self, user_id: UUID) -> RatingBoard:
        """Return the rating board for a user, loading it when not held."""
        self._drop_settled()
        board = self._boards.get(user_id)
        if board is None:
            board = RatingBoard.from_ratings(
                self.repository.list_ratings(user_id), self.reorder_delay_seconds
            )
            self._boards[user_id] = board
        return board

    def get_ratings(self, user_id: UUID) -> dict[str, Rating]:
        """Return the user's current ratings keyed by cache key."""
        return dict(self.board(user_id).visual)

    def liked_keys(self, user_id: UUID) -> list[str]:
        """Return the keys of foods the user likes."""
        return [
            key
            for key, rating in self.board(user_id).visual.items()
            if rating is Rating.LIKE
        ]

    async def toggle(self, user_id: UUID, food_name: str, requested: Rating) -> Rating:
        """Apply a like/dislike action and return the resulting rating."""
        key = cache_key(food_name)
        board = self.board(user_id)
        updated = toggle_rating(board.rating_for(key), requested)
        board.apply(key, updated)
        await self._persist(user_id, key, updated)
        return updated

    async def _persist(self, user_id: UUID, key: str, rating: Rating) -> None:
        self._saving[user_id] += 1
        try:
            if rating is Rating.NEUTRAL:
                await asyncio.to_thread(self.repository.delete_rating, user_id, key)
            else:
                await asyncio.to_thread(
                    self.repository.upsert_rating, user_id, key, rating
                )
        except Exception:
            _logger.exception("Failed to save rating for %s", key)
        finally:
            self._saving[user_id] -= 1
            if self._saving[user_id] <= 0:
                del self._saving[user_id]

    def _drop_settled(self) -> None:
        settled = [
            user_id
            for user_id, board in self._boards.items()
            if not board.has_pending_reorder() and user_id not in self._saving
        ]
        for user_id in settled:
            del self._boards[user_id]

    def close(self) -> None:
        """Cancel scheduled reorders on every board."""
        for board in self._boards.values():
            board.cancel_pending()
