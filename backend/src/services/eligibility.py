# backend/src/services/eligibility.py
"""
Проверка права оставить отзыв на заказ.

Проверки идут строго по порядку и останавливаются на первой неудачной.
Результат всегда структурный, исключений наружу не бросается.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..exceptions import ReviewServiceError, NotFound, Forbidden, StateConflict
from ..models import Order, User, Review, ReviewerProfile, OrderStatus, AuditAction, ActorRole
from .audit import AuditService
from .lookups import ExternalLookups
from .reviewer_profile import ReviewerProfileService

logger = logging.getLogger(__name__)


@dataclass
class EligibilityResult:
    eligible: bool
    message: str
    reason: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # Загруженные сущности, чтобы отправка отзыва не читала их повторно
    order: Optional[Order] = field(default=None, repr=False)
    user: Optional[User] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {"eligible": self.eligible, "message": self.message}
        if self.reason:
            data["reason"] = self.reason
        data.update(self.extra)
        return data

    def to_error(self) -> ReviewServiceError:
        if self.reason == "not_found":
            return NotFound(self.reason, self.message, details=self.extra)
        if self.reason == "forbidden":
            return Forbidden("forbidden", self.message, details=self.extra)
        if self.reason == "already_reviewed":
            return StateConflict(self.reason, self.message, details=self.extra)
        return StateConflict(self.reason, self.message, status_code=status.HTTP_400_BAD_REQUEST, details=self.extra)


class EligibilityGate:

    def __init__(
        self,
        settings: Config,
        lookups: ExternalLookups,
        profiles: ReviewerProfileService,
        audit: AuditService,
        reward_range: str,
        clock: Callable[[], datetime],
    ):
        self.settings = settings
        self.lookups = lookups
        self.profiles = profiles
        self.audit = audit
        self.reward_range = reward_range
        self.clock = clock

    async def check(self, db: AsyncSession, order_id: UUID, user_id: UUID) -> EligibilityResult:
        """Можно ли пользователю оставить отзыв на заказ"""
        order = await self.lookups.get_order(db, order_id)
        if order is None:
            return EligibilityResult(False, "Order not found", "not_found")

        if order.user_id != user_id:
            return EligibilityResult(False, "Not your order", "forbidden")

        existing = await db.execute(select(Review.id).where(Review.order_id == order_id))
        if existing.scalar_one_or_none() is not None:
            return EligibilityResult(False, "You have already reviewed this order", "already_reviewed")

        if order.status != OrderStatus.DELIVERED.value:
            return EligibilityResult(False, "Order must be delivered first", "order_not_delivered")

        now = self.clock()
        available_at = order.delivery_time + timedelta(seconds=self.settings.REVIEW_COOLDOWN_SECONDS)
        if now < available_at:
            remaining = math.ceil((available_at - now).total_seconds())
            return EligibilityResult(
                False,
                f"Please wait {remaining} more seconds after delivery",
                "too_soon",
                extra={"seconds_remaining": remaining},
            )

        profile = await self.profiles.get(db, user_id)
        if profile is not None and profile.ban_expired(now):
            profile = await self._lift_expired_ban(db, profile, now)
        if profile is not None and profile.is_banned:
            return EligibilityResult(
                False,
                "Your review privileges are temporarily suspended",
                "banned",
                extra={
                    "ban_expires_at": profile.ban_expires_at.isoformat() if profile.ban_expires_at else None
                },
            )

        user = await self.lookups.get_user(db, user_id)
        if user is None or not user.is_verified:
            return EligibilityResult(
                False, "Please verify your mobile number to submit reviews", "mobile_not_verified"
            )

        return EligibilityResult(
            True,
            "You can review this order",
            extra={"reward_range": self.reward_range},
            order=order,
            user=user,
        )

    async def _lift_expired_ban(
        self, db: AsyncSession, profile: ReviewerProfile, now: datetime
    ) -> ReviewerProfile:
        """Снять истёкший бан; возвращает профиль, перечитанный из БД.

        UPDATE срабатывает только пока в БД лежит тот же истёкший бан,
        свежий бан админа он не трогает.
        """
        user_id = profile.user_id
        expired_at = profile.ban_expires_at
        result = await db.execute(
            update(ReviewerProfile)
            .where(
                ReviewerProfile.user_id == user_id,
                ReviewerProfile.is_banned.is_(True),
                ReviewerProfile.ban_expires_at < now,
            )
            .values(is_banned=False, ban_reason=None, ban_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self.audit.record(
                db,
                AuditAction.UNBANNED,
                review_id=None,
                subject_user_id=user_id,
                performed_by_id=None,
                performed_by_role=ActorRole.SYSTEM,
                details={"auto": True, "expired_at": expired_at.isoformat()},
            )
            await db.commit()
            logger.info(f"Expired ban cleared: user={user_id}")
        else:
            logger.warning(f"Expired ban changed concurrently, re-checking: user={user_id}")
        return await self.profiles.get(db, user_id)
