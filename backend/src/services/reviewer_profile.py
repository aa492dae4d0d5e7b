# backend/src/services/reviewer_profile.py
"""
Профиль ревьюера: создание по требованию, атомарные счётчики, штрафы и баны
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..models import ReviewerProfile, User, level_case

logger = logging.getLogger(__name__)

SUBMISSION_BASE_POINTS = 10
PHOTO_BONUS_POINTS = 5
LONG_TEXT_BONUS_POINTS = 3
LONG_TEXT_CHARS = 200
HELPFUL_VOTE_POINTS = 1


class ReviewerProfileService:
    """Агрегат репутации ревьюера"""

    def __init__(self, settings: Config):
        self.settings = settings

    async def get(self, db: AsyncSession, user_id: UUID) -> Optional[ReviewerProfile]:
        result = await db.execute(
            select(ReviewerProfile)
            .where(ReviewerProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, user: User, now: datetime) -> ReviewerProfile:
        """Получить профиль или создать новый (флаги верификации берутся из пользователя)"""
        user_id = user.id
        profile = await self.get(db, user_id)
        if profile:
            return profile

        profile = ReviewerProfile(
            user_id=user_id,
            verified_mobile=bool(user.phone),
            verified_email=bool(user.email),
            total_orders=1,
            devices=[],
            ip_addresses=[],
            created_at=now,
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            # Профиль успел создать параллельный запрос
            await db.rollback()
            profile = await self.get(db, user_id)
            if profile is None:
                raise
            return profile

        logger.info(f"Reviewer profile created: user={user_id}")
        return profile

    async def apply_submission(
        self,
        db: AsyncSession,
        user_id: UUID,
        *,
        trust_score: int,
        coins: int,
        has_photos: bool,
        text_length: int,
        delivered_orders: int,
        device_fingerprint: Optional[str],
        ip_address: Optional[str],
        now: datetime,
    ) -> Optional[ReviewerProfile]:
        """Учесть новый отзыв в профиле автора"""
        points = SUBMISSION_BASE_POINTS
        if has_photos:
            points += PHOTO_BONUS_POINTS
        if text_length > LONG_TEXT_CHARS:
            points += LONG_TEXT_BONUS_POINTS

        new_points = ReviewerProfile.total_points + points
        await db.execute(
            update(ReviewerProfile)
            .where(ReviewerProfile.user_id == user_id)
            .values(
                avg_trust_score=(
                    (ReviewerProfile.avg_trust_score * ReviewerProfile.total_reviews + trust_score)
                    / (ReviewerProfile.total_reviews + 1)
                ),
                total_reviews=ReviewerProfile.total_reviews + 1,
                total_coins_earned=ReviewerProfile.total_coins_earned + coins,
                total_points=new_points,
                reviewer_level=level_case(new_points),
                total_orders=delivered_orders,
                last_review_date=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        profile = await self.get(db, user_id)
        if profile is None:
            return None
        profile.track_device(device_fingerprint, now)
        profile.track_ip(ip_address, now)
        await db.commit()
        return profile

    async def record_helpful_vote(self, db: AsyncSession, user_id: UUID) -> None:
        """+1 к полезности и очкам автора (без commit)"""
        new_points = ReviewerProfile.total_points + HELPFUL_VOTE_POINTS
        await db.execute(
            update(ReviewerProfile)
            .where(ReviewerProfile.user_id == user_id)
            .values(
                helpful_reviews=ReviewerProfile.helpful_reviews + 1,
                total_helpful_votes=ReviewerProfile.total_helpful_votes + 1,
                total_points=new_points,
                reviewer_level=level_case(new_points),
            )
            .execution_options(synchronize_session=False)
        )

    async def apply_penalty(
        self, db: AsyncSession, user_id: UUID, penalty_points: int, now: datetime
    ) -> Optional[ReviewerProfile]:
        """Штраф за скрытый/удалённый отзыв; при накоплении предупреждений бан.

        Возвращает обновлённый профиль (без commit) или None, если профиля нет.
        """
        new_points = ReviewerProfile.total_points - penalty_points
        result = await db.execute(
            update(ReviewerProfile)
            .where(ReviewerProfile.user_id == user_id)
            .values(
                flagged_reviews=ReviewerProfile.flagged_reviews + 1,
                warning_count=ReviewerProfile.warning_count + 1,
                total_points=new_points,
                reviewer_level=level_case(new_points),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        profile = await self.get(db, user_id)
        if profile.warning_count >= self.settings.AUTO_BAN_WARNINGS and not profile.is_banned:
            profile.ban(
                self.settings.AUTO_BAN_REASON,
                now + timedelta(days=self.settings.AUTO_BAN_DAYS),
            )
            logger.warning(
                f"Reviewer auto-banned: user={user_id}, warnings={profile.warning_count}"
            )
        return profile
