# backend/src/exceptions.py
"""
Доменные ошибки сервиса отзывов.

Каждая ошибка несёт стабильный код причины (reason) для клиентов,
человекочитаемое сообщение и HTTP-статус для роутеров.
"""

from typing import Any, Dict, Optional

from fastapi import status


class ReviewServiceError(Exception):
    """Базовая ошибка бизнес-логики"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        reason: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.reason = reason
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"reason": self.reason, "message": self.message, **self.details}


class ValidationFailed(ReviewServiceError):
    """Некорректный ввод (проверяется до чтения из БД)"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ReviewServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(ReviewServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class StateConflict(ReviewServiceError):
    """Нарушено бизнес-правило: повтор, неверный переход статуса и т.п."""
    status_code = status.HTTP_409_CONFLICT
