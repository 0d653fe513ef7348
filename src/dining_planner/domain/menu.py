"""Menu domain models."""

from dataclasses import dataclass, field
from enum import StrEnum

DEFAULT_CATEGORY = "Other"
DISLIKED_CATEGORY = "Disliked Items"
DEFAULT_SERVING_SIZE = "1 serving"


class MealType(StrEnum):
    """Dining hall meal periods."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


def cache_key(name: str) -> str:
    """Return the canonical lookup key for a food name."""
    return name.lower().strip()


@dataclass(frozen=True)
class SectionTitle:
    """Section heading inside a raw menu."""

    text: str


@dataclass(frozen=True)
class FoodRecord:
    """A food served on a menu.

    Identity is the normalized name; ``id`` is only a display hint because feed
    ids and ids assigned to static items are not stable across sources.
    """

    name: str
    serving_size: str = DEFAULT_SERVING_SIZE
    ingredients: str | None = None
    icons: frozenset[str] = field(default_factory=frozenset)
    id: int | None = None

    @property
    def key(self) -> str:
        """Return the cache key for this food."""
        return cache_key(self.name)

    def has_icon(self, icon: str) -> bool:
        """Return True when the food carries the given dietary icon."""
        return icon in self.icons


MenuEntry = SectionTitle | FoodRecord


@dataclass(frozen=True)
class CatalogCategory:
    """A display category with its ordered foods."""

    category: str
    items: list[FoodRecord]


def food_records(entries: list[MenuEntry]) -> list[FoodRecord]:
    """Return the foods from a raw menu, dropping section titles."""
    return [entry for entry in entries if isinstance(entry, FoodRecord)]


def format_serving_size(amount: object, unit: object) -> str:
    """Format feed serving size fields, falling back to a single serving."""
    if amount and unit:
        return f"{amount} {unit}"
    return DEFAULT_SERVING_SIZE
