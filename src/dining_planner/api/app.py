"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from dining_planner.api.admin import router as admin_router
from dining_planner.api.schemas import (
    EmailRequest,
    NutritionRequest,
    PreferencesBody,
    RatingRequest,
    RecommendDayRequest,
    RecommendRequest,
    SavePreferencesRequest,
    serialize_catalog,
    serialize_entry,
)
from dining_planner.app_logging import configure_logging
from dining_planner.config import ConfigurationError
from dining_planner.containers import AppContainer
from dining_planner.domain.menu import MealType, food_records
from dining_planner.domain.models import UserRecord
from dining_planner.domain.nutrition import NutritionEstimate, attach_nutrition
from dining_planner.services.catalog import build_catalog, eligible_foods
from dining_planner.services.digest import tomorrow
from dining_planner.services.menu import MenuUnavailableError
from dining_planner.services.recommendations import ComposerError

_logger = logging.getLogger(__name__)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def current_user(
    request: Request,
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
) -> UserRecord:
    """Resolve the caller from the identity header set by the auth proxy."""
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return _container(request).user_service.ensure_user(x_user_email, x_user_name)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _logger.error("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    @app.exception_handler(MenuUnavailableError)
    async def menu_unavailable(
        request: Request, exc: MenuUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Failed to fetch menu", "detail": str(exc)},
        )

    @app.exception_handler(ComposerError)
    async def composer_error(request: Request, exc: ComposerError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Could not generate recommendation", "detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/menu")
    async def menu(
        request: Request,
        target_date: date = Query(alias="date"),
        meal_type: MealType = Query(alias="mealType"),
    ) -> dict[str, object]:
        """Return the raw menu entries for a date, static items included."""
        entries = await _container(request).menu_service.get_menu(
            target_date, meal_type
        )
        return {
            "date": target_date.isoformat(),
            "mealType": meal_type.value,
            "items": [serialize_entry(entry) for entry in entries],
        }

    @app.post("/nutrition")
    async def nutrition(body: NutritionRequest, request: Request) -> dict[str, object]:
        """Resolve nutrition estimates for a batch of foods."""
        if not body.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="No items provided"
            )
        foods = [item.to_domain() for item in body.items]
        estimates = await _container(request).nutrition_service.resolve_batch(foods)
        return {"results": {key: value.as_dict() for key, value in estimates.items()}}

    @app.get("/catalog")
    async def catalog(
        request: Request,
        target_date: date = Query(alias="date"),
        meal_type: MealType = Query(alias="mealType"),
        user: UserRecord = Depends(current_user),
    ) -> dict[str, object]:
        """Return the grouped, filtered and ordered menu for the caller."""
        state = _container(request)
        entries = await state.menu_service.get_menu(target_date, meal_type)
        estimates: dict[str, NutritionEstimate] = {}
        foods = food_records(entries)
        if foods:
            try:
                estimates = await state.nutrition_service.resolve_batch(foods)
            except ConfigurationError as exc:
                _logger.warning("Catalog served without nutrition: %s", exc)
        preferences = state.preference_service.get(user.id)
        board = state.rating_service.board(user.id)
        categories = build_catalog(
            entries,
            preferences.dietary,
            preferences.nutrition,
            estimates,
            board.ordering,
        )
        return {
            "date": target_date.isoformat(),
            "mealType": meal_type.value,
            "categories": serialize_catalog(categories, estimates, board.visual),
            "reorderPending": board.has_pending_reorder(),
        }

    @app.post("/recommend")
    async def recommend(
        body: RecommendRequest,
        request: Request,
        user: UserRecord = Depends(current_user),
    ) -> dict[str, object]:
        """Compose one meal from the menu for the caller."""
        state = _container(request)
        state.nutrition_service.ensure_configured()
        state.recommendation_service.ensure_configured()
        if body.goals is None:
            goals = state.preference_service.get(user.id).goals
        else:
            goals = body.goals.to_domain()
            state.preference_service.remember_goals(user.id, goals)
        entries = await state.menu_service.get_menu(body.target_date, body.meal_type)
        foods = eligible_foods(
            food_records(entries), state.rating_service.get_ratings(user.id)
        )
        if not foods:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No menu items available for this meal",
            )
        estimates = await state.nutrition_service.resolve_batch(foods)
        plan = await state.recommendation_service.compose_meal(
            attach_nutrition(foods, estimates),
            goals,
            state.rating_service.liked_keys(user.id),
        )
        return plan.model_dump(by_alias=True)

    @app.post("/recommend-day")
    async def recommend_day(
        body: RecommendDayRequest,
        request: Request,
        user: UserRecord = Depends(current_user),
    ) -> dict[str, object]:
        """Compose breakfast, lunch and dinner for the caller."""
        state = _container(request)
        goals = None
        if body.goals is not None:
            goals = body.goals.to_domain()
            state.preference_service.remember_goals(user.id, goals)
        day = await state.digest_service.compose_day_for(
            user.id, body.target_date, goals
        )
        return day.model_dump(by_alias=True)

    @app.get("/preferences")
    async def get_preferences(
        request: Request, user: UserRecord = Depends(current_user)
    ) -> dict[str, object]:
        """Return saved goals and filters, or defaults."""
        preferences = _container(request).preference_service.get(user.id)
        return {
            "preferences": PreferencesBody.from_preferences(preferences).model_dump(
                by_alias=True
            )
        }

    @app.post("/preferences")
    async def save_preferences(
        body: SavePreferencesRequest,
        request: Request,
        user: UserRecord = Depends(current_user),
    ) -> dict[str, bool]:
        """Save goals and filters for the caller."""
        _container(request).preference_service.save(
            user.id, body.preferences.to_preferences()
        )
        return {"success": True}

    @app.get("/food-ratings")
    async def get_ratings(
        request: Request, user: UserRecord = Depends(current_user)
    ) -> dict[str, object]:
        """Return the caller's like/dislike ratings keyed by food."""
        ratings = _container(request).rating_service.get_ratings(user.id)
        return {"ratings": {key: rating.value for key, rating in ratings.items()}}

    @app.post("/food-ratings")
    async def toggle_rating(
        body: RatingRequest,
        request: Request,
        user: UserRecord = Depends(current_user),
    ) -> dict[str, object]:
        """Toggle a like or dislike and return the resulting rating."""
        rating_service = _container(request).rating_service
        updated = await rating_service.toggle(user.id, body.food_name, body.rating)
        return {
            "foodName": body.food_name,
            "rating": updated.value,
            "reorderPending": rating_service.board(user.id).has_pending_reorder(),
        }

    @app.get("/email")
    async def email_status(
        request: Request, user: UserRecord = Depends(current_user)
    ) -> dict[str, bool]:
        """Return whether the caller receives the daily digest."""
        return {"subscribed": _container(request).digest_service.is_subscribed(user.id)}

    @app.post("/email")
    async def set_email(
        body: EmailRequest,
        request: Request,
        user: UserRecord = Depends(current_user),
    ) -> JSONResponse:
        """Opt in or out of the digest; opting in sends tomorrow's digest."""
        state = _container(request)
        outcome = await state.digest_service.set_subscription(
            user, body.opted_in, tomorrow(state.settings.dining_timezone)
        )
        content: dict[str, object] = {
            "subscribed": outcome.subscribed,
            "emailSent": outcome.email_sent,
        }
        if outcome.error is not None:
            content["error"] = outcome.error
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
            )
        return JSONResponse(content=content)

    return app
