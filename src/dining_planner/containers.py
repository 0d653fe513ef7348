"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from dining_planner.adapters.menu_client import HttpxMenuClient
from dining_planner.adapters.openai_structured_client import OpenAIStructuredClient
from dining_planner.adapters.resend_client import HttpxResendClient
from dining_planner.adapters.supabase_nutrition_cache_repository import (
    SupabaseNutritionCacheRepository,
)
from dining_planner.adapters.supabase_preference_repository import (
    SupabasePreferenceRepository,
)
from dining_planner.adapters.supabase_rating_repository import (
    SupabaseRatingRepository,
)
from dining_planner.adapters.supabase_subscription_repository import (
    SupabaseSubscriptionRepository,
)
from dining_planner.adapters.supabase_user_repository import SupabaseUserRepository
from dining_planner.config import Settings, configured_secret
from dining_planner.services.cache import InMemoryCache
from dining_planner.services.digest import DigestService
from dining_planner.services.menu import MenuService
from dining_planner.services.nutrition import NutritionService
from dining_planner.services.preferences import PreferenceService
from dining_planner.services.ratings import RatingService
from dining_planner.services.recommendations import RecommendationService
from dining_planner.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    menu_service: MenuService
    nutrition_service: NutritionService
    recommendation_service: RecommendationService
    preference_service: PreferenceService
    rating_service: RatingService
    digest_service: DigestService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    menu_client = HttpxMenuClient.create(
        base_url=resolved_settings.menu_base_url,
        school=resolved_settings.menu_school,
    )
    openai_key = configured_secret(resolved_settings.openai_api_key)
    openai_client = OpenAIStructuredClient.create(openai_key) if openai_key else None
    resend_key = configured_secret(resolved_settings.resend_api_key)
    resend_client = (
        HttpxResendClient.create(
            api_key=resend_key,
            from_address=resolved_settings.digest_from_address,
            base_url=resolved_settings.resend_base_url,
        )
        if resend_key
        else None
    )

    menu_service = MenuService(
        client=menu_client,
        cache=InMemoryCache(),
        cache_ttl_seconds=resolved_settings.menu_cache_ttl_seconds,
        timeout_seconds=resolved_settings.menu_timeout_seconds,
    )
    nutrition_service = NutritionService(
        repository=SupabaseNutritionCacheRepository(supabase_client),
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.estimator_timeout_seconds,
    )
    recommendation_service = RecommendationService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.composer_timeout_seconds,
        enforce_variety=resolved_settings.enforce_day_variety,
    )
    preference_service = PreferenceService(
        SupabasePreferenceRepository(supabase_client)
    )
    rating_service = RatingService(
        repository=SupabaseRatingRepository(supabase_client),
        reorder_delay_seconds=resolved_settings.rating_reorder_delay_seconds,
    )
    digest_service = DigestService(
        menu_service=menu_service,
        nutrition_service=nutrition_service,
        recommendation_service=recommendation_service,
        preference_service=preference_service,
        rating_service=rating_service,
        subscription_repository=SupabaseSubscriptionRepository(supabase_client),
        delivery_client=resend_client,
        delivery_timeout_seconds=resolved_settings.delivery_timeout_seconds,
    )

    async def close_resources() -> None:
        rating_service.close()
        await nutrition_service.flush_writes()
        await menu_client.close()
        if openai_client is not None:
            await openai_client.close()
        if resend_client is not None:
            await resend_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=UserService(SupabaseUserRepository(supabase_client)),
        menu_service=menu_service,
        nutrition_service=nutrition_service,
        recommendation_service=recommendation_service,
        preference_service=preference_service,
        rating_service=rating_service,
        digest_service=digest_service,
        close_resources=close_resources,
    )
