"""Nutrition resolution with a cache-aside store and batched estimates."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel, ValidationError

from dining_planner.config import ConfigurationError
from dining_planner.domain.menu import FoodRecord
from dining_planner.domain.nutrition import NUTRITION_TAGS, NutritionEstimate
from dining_planner.services.structured_output import StructuredOutputClient

_logger = logging.getLogger(__name__)

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "calories": {"type": "number"},
                    "protein": {"type": "number"},
                    "carbs": {"type": "number"},
                    "fat": {"type": "number"},
                    "tags": {
                        "type": "array",
                        "items": {"type": "string", "enum": list(NUTRITION_TAGS)},
                    },
                },
                "required": ["calories", "protein", "carbs", "fat", "tags"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}


class NutritionCacheRepository(Protocol):
    """Persistence interface for cached nutrition estimates."""

    def get_estimates(self, keys: list[str]) -> dict[str, NutritionEstimate]:
        """Return cached estimates for the keys that are present."""

    def upsert_estimate(self, key: str, estimate: NutritionEstimate) -> None:
        """Insert or replace the estimate stored for a key."""


class _EstimateRow(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    tags: list[str] = []


class _EstimateBatch(BaseModel):
    items: list[_EstimateRow]


@dataclass
class NutritionService:
    """Resolves nutrition for menu foods, estimating only cache misses."""

    repository: NutritionCacheRepository
    client: StructuredOutputClient | None
    model: str
    reasoning_effort: str | None = None
    store: bool = False
    timeout_seconds: float = 60.0
    _pending_writes: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    def ensure_configured(self) -> StructuredOutputClient:
        """Return the estimator client, raising ConfigurationError if unset."""
        if self.client is None:
            raise ConfigurationError("Nutrition estimator is not configured")
        return self.client

    async def resolve_batch(
        self, items: list[FoodRecord]
    ) -> dict[str, NutritionEstimate]:
        """Return estimates keyed by cache key.

        Cached foods are returned as stored. All misses go to the estimator in
        a single request, in input order, and results are matched back by
        position. Keys that could not be resolved are absent from the result.
        """
        client = self.ensure_configured()
        keys = list(dict.fromkeys(item.key for item in items))
        results = self._read_cached(keys)

        uncached: list[FoodRecord] = []
        pending_keys: set[str] = set()
        for item in items:
            if item.key in results or item.key in pending_keys:
                continue
            pending_keys.add(item.key)
            uncached.append(item)
        if not uncached:
            return results

        estimates = await self._estimate(client, uncached)
        for item, estimate in zip(uncached, estimates, strict=False):
            results[item.key] = estimate
            self._persist(item.key, estimate)
        return results

    async def flush_writes(self) -> None:
        """Wait for in-flight cache writes to settle."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    def _read_cached(self, keys: list[str]) -> dict[str, NutritionEstimate]:
        if not keys:
            return {}
        try:
            cached = self.repository.get_estimates(keys)
        except Exception:
            _logger.exception("Nutrition cache read failed for %s keys", len(keys))
            return {}
        return {key: cached[key] for key in keys if key in cached}

    async def _estimate(
        self, client: StructuredOutputClient, items: list[FoodRecord]
    ) -> list[NutritionEstimate]:
        try:
            async with asyncio.timeout(self.timeout_seconds):
                raw = await client.complete(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    prompt=build_estimate_prompt(items),
                    schema_name="nutrition_estimates",
                    schema=ESTIMATE_SCHEMA,
                    timeout=self.timeout_seconds,
                )
            batch = _EstimateBatch.model_validate(raw)
        except ValidationError as exc:
            _logger.warning(
                "Nutrition estimator returned a malformed payload for %s items: %s",
                len(items),
                exc.error_count(),
            )
            return []
        except Exception:
            _logger.exception("Nutrition estimator failed for %s items", len(items))
            return []

        if len(batch.items) != len(items):
            _logger.warning(
                "Nutrition estimator returned %s results for %s items",
                len(batch.items),
                len(items),
            )
        return [
            NutritionEstimate.from_raw(
                calories=row.calories,
                protein=row.protein,
                carbs=row.carbs,
                fat=row.fat,
                tags=row.tags,
            )
            for row in batch.items
        ]

    def _persist(self, key: str, estimate: NutritionEstimate) -> None:
        task = asyncio.create_task(
            asyncio.to_thread(self.repository.upsert_estimate, key, estimate)
        )
        self._pending_writes.add(task)

        def _done(finished: asyncio.Task[None]) -> None:
            self._pending_writes.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if error is not None:
                _logger.error(
                    "Failed to cache nutrition for %s", key, exc_info=error
                )

        task.add_done_callback(_done)


def build_estimate_prompt(items: list[FoodRecord]) -> str:
    """Build the estimator prompt listing foods in request order."""
    lines: list[str] = []
    for index, item in enumerate(items, start=1):
        line = f'{index}. "{item.name}" (dining hall serving size: {item.serving_size})'
        if item.ingredients:
            line += f"\n   Ingredients: {item.ingredients}"
        lines.append(line)
    tag_list = "\n".join(f'- "{tag}"' for tag in NUTRITION_TAGS)
    return (
        "For each food item below from a college dining hall, estimate its "
        "nutrition for the given serving size. The serving size comes from the "
        "dining hall's own data. Use the ingredients list (when provided) to "
        "make a more accurate estimate. Return an object whose \"items\" array "
        "has exactly one entry per food, in the same order.\n\n"
        "Also assign zero or more nutritional category tags from this list "
        "based on the item's nutritional profile. Use a slightly lower "
        'threshold for "Protein rich" on vegetarian and vegan items.\n'
        f"{tag_list}\n\n" + "\n".join(lines)
    )
