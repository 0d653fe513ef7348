"""Resend email API client adapter."""

from dataclasses import dataclass

import httpx

from dining_planner.services.digest import DeliveryClient


@dataclass
class HttpxResendClient(DeliveryClient):
    """Email delivery client implemented with httpx."""

    api_key: str
    from_address: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, from_address: str, base_url: str
    ) -> "HttpxResendClient":
        """Create a Resend client with a managed httpx session."""
        return cls(
            api_key=api_key,
            from_address=from_address,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def send_email(
        self, *, recipient: str, subject: str, html: str, timeout: float
    ) -> None:
        """Send an HTML email using Resend's emails API."""
        payload: dict[str, object] = {
            "from": self.from_address,
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        response = await self.http_client.post(
            f"{self.base_url}/emails",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=timeout,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
