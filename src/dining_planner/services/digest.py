"""Daily digest assembly and delivery."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from dining_planner.config import ConfigurationError
from dining_planner.domain.digest import DayMenus, DigestPayload
from dining_planner.domain.menu import MealType, food_records
from dining_planner.domain.models import UserRecord
from dining_planner.domain.nutrition import FoodWithNutrition, attach_nutrition
from dining_planner.domain.preferences import RecommendationGoals
from dining_planner.domain.ratings import Rating
from dining_planner.domain.recommendations import DayPlan
from dining_planner.services.catalog import eligible_foods
from dining_planner.services.digest_email import render_digest
from dining_planner.services.menu import MenuService
from dining_planner.services.nutrition import NutritionService
from dining_planner.services.preferences import PreferenceService
from dining_planner.services.ratings import RatingService
from dining_planner.services.recommendations import (
    ComposerError,
    RecommendationService,
)

_logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a digest could not be handed to the delivery service."""


class DeliveryClient(Protocol):
    """Interface for out-of-band email delivery."""

    async def send_email(
        self, *, recipient: str, subject: str, html: str, timeout: float
    ) -> None:
        """Send one HTML email."""


class SubscriptionRepository(Protocol):
    """Persistence interface for digest subscriptions."""

    def is_subscribed(self, user_id: UUID) -> bool:
        """Return True when the user opted in to digests."""

    def set_subscribed(self, user_id: UUID, opted_in: bool) -> None:
        """Insert or update the user's opt-in flag."""

    def list_subscribed_users(self) -> list[UserRecord]:
        """Return every user currently opted in."""


@dataclass(frozen=True)
class SubscriptionOutcome:
    """Result of an opt-in or opt-out request."""

    subscribed: bool
    email_sent: bool = False
    error: str | None = None


@dataclass(frozen=True)
class DeliveryReport:
    """Per-recipient result of a digest run."""

    recipient: str
    sent: bool
    fallback: bool
    error: str | None = None


def tomorrow(timezone_name: str, now: datetime | None = None) -> date:
    """Return tomorrow's date in the dining hall's timezone.

    ``now`` must be timezone-aware.
    """
    if now is not None and now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")
    current = now or datetime.now(tz=ZoneInfo(timezone_name))
    return current.astimezone(ZoneInfo(timezone_name)).date() + timedelta(days=1)


@dataclass
class DigestService:
    """Builds full-day recommendations and delivers them to subscribers."""

    menu_service: MenuService
    nutrition_service: NutritionService
    recommendation_service: RecommendationService
    preference_service: PreferenceService
    rating_service: RatingService
    subscription_repository: SubscriptionRepository
    delivery_client: DeliveryClient | None
    delivery_timeout_seconds: float = 10.0

    async def collect_day(
        self, target_date: date, ratings: Mapping[str, Rating]
    ) -> DayMenus:
        """Fetch and resolve all three meals concurrently.

        A meal whose menu or nutrition lookup fails becomes an empty list; the
        other meals are unaffected. Disliked foods are left out.
        """
        breakfast, lunch, dinner = await asyncio.gather(
            self._leg(target_date, MealType.BREAKFAST, ratings),
            self._leg(target_date, MealType.LUNCH, ratings),
            self._leg(target_date, MealType.DINNER, ratings),
        )
        return DayMenus(breakfast=breakfast, lunch=lunch, dinner=dinner)

    async def compose_day_for(
        self,
        user_id: UUID,
        target_date: date,
        goals: RecommendationGoals | None = None,
    ) -> DayPlan:
        """Compose a day plan for a user from their goals and ratings.

        Saved goals are used unless explicit goals are given.
        """
        self.nutrition_service.ensure_configured()
        self.recommendation_service.ensure_configured()
        if goals is None:
            goals = self.preference_service.get(user_id).goals
        menus = await self.collect_day(
            target_date, self.rating_service.get_ratings(user_id)
        )
        if menus.is_empty():
            raise ComposerError(f"No menu data for {target_date.isoformat()}")
        return await self.recommendation_service.compose_day(
            menus.breakfast,
            menus.lunch,
            menus.dinner,
            goals,
            self.rating_service.liked_keys(user_id),
        )

    async def build_digest(self, user: UserRecord, target_date: date) -> DigestPayload:
        """Build the digest for a user, falling back when no plan is possible.

        An unconfigured estimator or composer also yields the fallback digest.
        """
        day_plan: DayPlan | None = None
        try:
            day_plan = await self.compose_day_for(user.id, target_date)
        except (ComposerError, ConfigurationError) as exc:
            _logger.warning("Digest for %s uses fallback: %s", user.email, exc)
        return render_digest(user, target_date, day_plan)

    async def send_digest(self, user: UserRecord, target_date: date) -> DigestPayload:
        """Build and deliver a digest, raising DeliveryError if sending fails."""
        client = self.ensure_delivery_configured()
        payload = await self.build_digest(user, target_date)
        try:
            async with asyncio.timeout(self.delivery_timeout_seconds):
                await client.send_email(
                    recipient=payload.recipient,
                    subject=payload.subject,
                    html=payload.html,
                    timeout=self.delivery_timeout_seconds,
                )
        except Exception as exc:
            _logger.exception("Digest delivery to %s failed", payload.recipient)
            raise DeliveryError(f"Failed to send digest to {payload.recipient}") from exc
        return payload

    async def set_subscription(
        self, user: UserRecord, opted_in: bool, target_date: date
    ) -> SubscriptionOutcome:
        """Store the opt-in flag and send the next digest right away on opt-in.

        The flag is not reverted when the first send fails.
        """
        self.subscription_repository.set_subscribed(user.id, opted_in)
        if not opted_in:
            return SubscriptionOutcome(subscribed=False)
        try:
            await self.send_digest(user, target_date)
        except DeliveryError as exc:
            return SubscriptionOutcome(subscribed=True, error=str(exc))
        return SubscriptionOutcome(subscribed=True, email_sent=True)

    def is_subscribed(self, user_id: UUID) -> bool:
        """Return True when the user opted in to digests."""
        return self.subscription_repository.is_subscribed(user_id)

    async def send_to_subscribers(self, target_date: date) -> list[DeliveryReport]:
        """Send the digest to every subscriber, one report per recipient."""
        self.ensure_delivery_configured()
        reports: list[DeliveryReport] = []
        for user in self.subscription_repository.list_subscribed_users():
            try:
                payload = await self.send_digest(user, target_date)
            except DeliveryError as exc:
                reports.append(
                    DeliveryReport(
                        recipient=user.email, sent=False, fallback=False, error=str(exc)
                    )
                )
                continue
            reports.append(
                DeliveryReport(
                    recipient=user.email, sent=True, fallback=payload.is_fallback
                )
            )
        return reports

    def ensure_delivery_configured(self) -> DeliveryClient:
        """Return the delivery client, raising ConfigurationError if unset."""
        if self.delivery_client is None:
            raise ConfigurationError("Email delivery is not configured")
        return self.delivery_client

    async def _leg(
        self, target_date: date, meal_type: MealType, ratings: Mapping[str, Rating]
    ) -> list[FoodWithNutrition]:
        try:
            entries = await self.menu_service.get_menu(target_date, meal_type)
            foods = eligible_foods(food_records(entries), ratings)
            if not foods:
                return []
            estimates = await self.nutrition_service.resolve_batch(foods)
        except Exception:
            _logger.exception(
                "Menu leg %s for %s failed", meal_type.value, target_date.isoformat()
            )
            return []
        return attach_nutrition(foods, estimates)

