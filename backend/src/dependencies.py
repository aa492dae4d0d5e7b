# backend/src/dependencies.py
"""
Зависимости FastAPI: сессия БД, сервисы, текущий пользователь и права
"""

from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import session_scope
from .exceptions import Forbidden, ReviewServiceError
from .models import User
from .policies import Capability, has_capability
from .services import Services


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Сессия базы данных на время запроса"""
    async for session in session_scope(request.app.state.session_factory):
        yield session


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Текущий пользователь по заголовку X-User-Id (токены выдаёт сервис авторизации)"""
    if not x_user_id:
        raise ReviewServiceError("unauthorized", "Authentication required", status_code=401)
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise ReviewServiceError("unauthorized", "Invalid user id", status_code=401)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise ReviewServiceError("unauthorized", "User not found", status_code=401)

    if not user.is_active:
        raise Forbidden("user_inactive", "User is blocked")

    return user


def require_capability(capability: Capability):
    """Проверка права роли на операцию"""
    def capability_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user, capability):
            raise Forbidden("forbidden", f"Access denied: {capability.value} is not allowed for {current_user.role}")
        return current_user
    return capability_checker


# Сокращения для удобства
require_admin = require_capability(Capability.MODERATE_REVIEWS)


def get_device_fingerprint(x_device_fingerprint: Optional[str] = Header(default=None)) -> str:
    return x_device_fingerprint or "unknown"


def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
