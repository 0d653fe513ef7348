"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from dining_planner.services.digest import tomorrow

if TYPE_CHECKING:
    from dining_planner.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/digests", dependencies=[Depends(require_admin)])
async def send_digests(
    request: Request, target_date: date | None = Query(default=None, alias="date")
) -> dict[str, object]:
    """Send the digest to every subscriber and report each outcome."""
    container: AppContainer = request.app.state.container
    resolved_date = target_date or tomorrow(container.settings.dining_timezone)
    reports = await container.digest_service.send_to_subscribers(resolved_date)
    return {
        "date": resolved_date.isoformat(),
        "sent": sum(1 for report in reports if report.sent),
        "failed": sum(1 for report in reports if not report.sent),
        "results": [
            {
                "recipient": report.recipient,
                "sent": report.sent,
                "fallback": report.fallback,
                "error": report.error,
            }
            for report in reports
        ],
    }
