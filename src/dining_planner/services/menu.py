"""Menu feed access with static item injection and caching."""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from datetime import date

from dining_planner.adapters.menu_client import MenuClient
from dining_planner.domain.menu import (
    FoodRecord,
    MealType,
    MenuEntry,
    SectionTitle,
    format_serving_size,
)
from dining_planner.services.cache import Cache

STATIC_SECTION_TITLE = "Always Available"

_logger = logging.getLogger(__name__)


class MenuUnavailableError(RuntimeError):
    """Raised when the menu feed cannot be fetched."""


@dataclass(frozen=True)
class _StaticItem:
    name: str
    amount: str
    unit: str
    icons: tuple[str, ...]


# Served every meal but not always listed by the feed.
_ALWAYS_AVAILABLE = (
    _StaticItem("Chocolate Milk", "8", "fl oz", ("Vegan", "Vegetarian")),
    _StaticItem("Hot Chocolate", "8", "fl oz", ("Vegetarian",)),
    _StaticItem("Tofu (Raw)", "1", "cup", ("Vegan", "Vegetarian")),
    _StaticItem("Garbanzo Beans", "1", "cup", ("Vegan", "Vegetarian")),
    _StaticItem("Cherry Tomatoes", "0.5", "cup", ("Vegan", "Vegetarian")),
    _StaticItem("Shredded Cheese", "1", "tbsp", ("Vegetarian",)),
    _StaticItem("Olives", "1", "tbsp", ("Vegan", "Vegetarian")),
)

_BREAKFAST_ONLY = (
    _StaticItem("Honeydew Melon", "1", "cup", ("Vegan", "Vegetarian")),
    _StaticItem("Cantaloupe (Musk Melon)", "1", "cup", ("Vegan", "Vegetarian")),
    _StaticItem("Granola", "1", "cup", ("Vegan", "Vegetarian")),
)


@dataclass
class MenuService:
    """Service that loads a day's menu for one meal type."""

    client: MenuClient
    cache: Cache
    cache_ttl_seconds: int = 900
    timeout_seconds: float = 15.0
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def get_menu(self, target_date: date, meal_type: MealType) -> list[MenuEntry]:
        """Return the ordered menu entries for a date, static items included.

        Returns an empty list when the feed has no menu for the date.
        """
        cache_key = f"menu:{meal_type.value}:{target_date.isoformat()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return list(cached)

        payload = await self._fetch_with_retry(target_date, meal_type)
        day_entries = parse_menu_day(payload, target_date)
        entries: list[MenuEntry] = []
        if day_entries is not None:
            entries = [*day_entries, *static_menu_entries(meal_type)]
        self.cache.set(cache_key, entries, ttl_seconds=self.cache_ttl_seconds)
        return list(entries)

    async def _fetch_with_retry(
        self, target_date: date, meal_type: MealType
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await self.client.fetch_week(
                    meal_type.value, target_date, timeout=self.timeout_seconds
                )
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Menu fetch %s %s failed (attempt %s/%s): %s",
                    meal_type.value,
                    target_date.isoformat(),
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise MenuUnavailableError(
                        f"Menu for {meal_type.value} on {target_date} is unavailable"
                    ) from exc
                await asyncio.sleep(self.retry_delay_seconds)


def parse_menu_day(
    payload: dict[str, object], target_date: date
) -> list[MenuEntry] | None:
    """Extract the entries for one date from a weekly feed payload."""
    days = payload.get("days")
    if not isinstance(days, list):
        return None
    wanted = target_date.isoformat()
    for day in days:
        if isinstance(day, dict) and day.get("date") == wanted:
            raw_items = day.get("menu_items") or []
            return [
                entry
                for entry in (_parse_entry(item) for item in raw_items)
                if entry is not None
            ]
    return None


def _parse_entry(item: object) -> MenuEntry | None:
    if not isinstance(item, dict):
        return None
    if item.get("is_section_title"):
        return SectionTitle(text=str(item.get("text") or ""))
    food = item.get("food")
    if not isinstance(food, dict) or not food.get("name"):
        return None
    serving = food.get("serving_size_info") or {}
    icons = (food.get("icons") or {}).get("food_icons") or []
    return FoodRecord(
        name=str(food["name"]),
        serving_size=format_serving_size(
            serving.get("serving_size_amount"), serving.get("serving_size_unit")
        ),
        ingredients=food.get("ingredients") or None,
        icons=frozenset(
            str(icon["synced_name"])
            for icon in icons
            if isinstance(icon, dict) and icon.get("synced_name")
        ),
        id=food.get("id") if isinstance(food.get("id"), int) else None,
    )


def static_menu_entries(meal_type: MealType) -> list[MenuEntry]:
    """Return the static section for a meal, numbered -1, -2, ... per call."""
    items = list(_ALWAYS_AVAILABLE)
    if meal_type is MealType.BREAKFAST:
        items.extend(_BREAKFAST_ONLY)
    ids = itertools.count(-1, -1)
    entries: list[MenuEntry] = [SectionTitle(text=STATIC_SECTION_TITLE)]
    entries.extend(
        FoodRecord(
            name=item.name,
            serving_size=format_serving_size(item.amount, item.unit),
            icons=frozenset(item.icons),
            id=next(ids),
        )
        for item in items
    )
    return entries
