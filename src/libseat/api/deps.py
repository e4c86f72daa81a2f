"""
Shared API dependencies
"""
from typing import Optional
from fastapi import Header, Query, Request

from libseat.services.container import Services
from libseat.services.errors import PermissionDeniedError


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user_id(
    user_id: int = Query(..., description="Caller's user id; authentication happens upstream")
) -> int:
    return user_id


async def get_is_admin(
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> bool:
    return (x_user_role or "").lower() == "admin"


async def require_admin(
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> None:
    if not await get_is_admin(x_user_role):
        raise PermissionDeniedError("Administrator role required")
