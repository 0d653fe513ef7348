"""Nutrislice dining menu API client."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

import httpx


class MenuClient(Protocol):
    """Interface for the dining hall menu feed."""

    async def fetch_week(
        self, meal_type: str, target_date: date, timeout: float
    ) -> dict[str, object]:
        """Return the raw weekly menu payload containing the target date."""


@dataclass
class HttpxMenuClient(MenuClient):
    """HTTPX-backed Nutrislice client."""

    base_url: str
    school: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, school: str) -> "HttpxMenuClient":
        """Create a menu client with a managed httpx session."""
        return cls(base_url=base_url, school=school, http_client=httpx.AsyncClient())

    async def fetch_week(
        self, meal_type: str, target_date: date, timeout: float
    ) -> dict[str, object]:
        """Fetch the week of menus for a meal type."""
        url = (
            f"{self.base_url}/weeks/school/{self.school}/menu-type/{meal_type}/"
            f"{target_date.year}/{target_date.month}/{target_date.day}/"
        )
        response = await self.http_client.get(
            url,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
