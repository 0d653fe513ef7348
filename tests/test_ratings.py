"""Tests for rating toggles and delayed reordering."""

import asyncio
from uuid import uuid4

import pytest

from dining_planner.domain.menu import FoodRecord, SectionTitle
from dining_planner.domain.preferences import DietaryFilters, NutritionFilters
from dining_planner.domain.ratings import Rating
from dining_planner.services.catalog import build_catalog
from dining_planner.services.ratings import RatingBoard, RatingService
from tests.conftest import InMemoryRatingRepository


def _order(board: RatingBoard) -> list[str]:
    entries = [
        SectionTitle("Entrees"),
        FoodRecord(name="Pasta"),
        FoodRecord(name="Tacos"),
    ]
    catalog = build_catalog(
        entries, DietaryFilters(), NutritionFilters(), {}, board.ordering
    )
    return [food.name for category in catalog for food in category.items]


def test_board_applies_visual_state_before_ordering() -> None:
    async def _run() -> None:
        board = RatingBoard(reorder_delay_seconds=0.05)
        board.apply("tacos", Rating.LIKE)

        assert board.rating_for("tacos") is Rating.LIKE
        assert board.has_pending_reorder()
        assert _order(board) == ["Pasta", "Tacos"]

        await asyncio.sleep(0.1)

        assert not board.has_pending_reorder()
        assert _order(board) == ["Tacos", "Pasta"]

    asyncio.run(_run())


def test_board_settles_to_latest_state() -> None:
    async def _run() -> None:
        board = RatingBoard(reorder_delay_seconds=0.05)
        board.apply("tacos", Rating.LIKE)
        board.apply("tacos", Rating.NEUTRAL)
        board.apply("pasta", Rating.DISLIKE)

        await asyncio.sleep(0.1)

        assert board.ordering == {"pasta": Rating.DISLIKE}
        assert board.visual == board.ordering

    asyncio.run(_run())


def test_cancel_pending_keeps_previous_ordering() -> None:
    async def _run() -> None:
        board = RatingBoard(reorder_delay_seconds=0.05)
        board.apply("tacos", Rating.LIKE)
        board.cancel_pending()

        await asyncio.sleep(0.1)

        assert board.ordering == {}
        assert board.visual == {"tacos": Rating.LIKE}

    asyncio.run(_run())


def test_apply_requires_running_loop() -> None:
    with pytest.raises(RuntimeError):
        RatingBoard().apply("tacos", Rating.LIKE)


def test_toggle_persists_upsert_and_delete() -> None:
    repository = InMemoryRatingRepository()
    service = RatingService(repository, reorder_delay_seconds=0)
    user_id = uuid4()

    async def _run() -> list[Rating]:
        first = await service.toggle(user_id, " Tacos ", Rating.LIKE)
        stored = repository.list_ratings(user_id)
        second = await service.toggle(user_id, "tacos", Rating.LIKE)
        return [first, stored.get("tacos"), second]  # type: ignore[list-item]

    first, stored, second = asyncio.run(_run())

    assert first is Rating.LIKE
    assert stored is Rating.LIKE
    assert second is Rating.NEUTRAL
    assert repository.list_ratings(user_id) == {}


def test_toggle_replaces_like_with_dislike() -> None:
    repository = InMemoryRatingRepository()
    service = RatingService(repository, reorder_delay_seconds=0)
    user_id = uuid4()

    async def _run() -> Rating:
        await service.toggle(user_id, "Tacos", Rating.LIKE)
        return await service.toggle(user_id, "Tacos", Rating.DISLIKE)

    assert asyncio.run(_run()) is Rating.DISLIKE
    assert repository.list_ratings(user_id) == {"tacos": Rating.DISLIKE}


def test_persistence_failure_keeps_rating_until_reorder_settles() -> None:
    repository = InMemoryRatingRepository(fail_writes=True)
    service = RatingService(repository, reorder_delay_seconds=0.05)
    user_id = uuid4()

    async def _run() -> None:
        result = await service.toggle(user_id, "Tacos", Rating.DISLIKE)

        assert result is Rating.DISLIKE
        assert service.get_ratings(user_id) == {"tacos": Rating.DISLIKE}

        await asyncio.sleep(0.1)

        assert service.get_ratings(user_id) == {}

    asyncio.run(_run())


def test_settled_board_reloads_stored_ratings() -> None:
    user_id = uuid4()
    repository = InMemoryRatingRepository(
        ratings={user_id: {"curry": Rating.LIKE, "liver": Rating.DISLIKE}}
    )
    service = RatingService(repository)

    assert service.liked_keys(user_id) == ["curry"]
    repository.ratings[user_id]["tacos"] = Rating.LIKE
    assert service.liked_keys(user_id) == ["curry", "tacos"]
    assert service.board(user_id).ordering == service.board(user_id).visual


def test_pending_board_is_kept_and_settled_boards_are_dropped() -> None:
    repository = InMemoryRatingRepository()
    service = RatingService(repository, reorder_delay_seconds=0.05)
    busy, idle = uuid4(), uuid4()

    async def _run() -> None:
        service.board(idle)
        await service.toggle(busy, "Tacos", Rating.LIKE)
        pending = service.board(busy)

        assert pending.has_pending_reorder()
        assert service.board(busy) is pending
        assert list(service._boards) == [busy]

        await asyncio.sleep(0.1)
        service.board(idle)

        assert list(service._boards) == [idle]

    asyncio.run(_run())
