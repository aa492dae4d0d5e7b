# backend/src/services/analytics.py
"""
Сводная статистика по отзывам для админки (кэшируется по диапазону времени)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Review, ReviewerProfile, ReviewReward, ReviewStatus, RewardStatus, TimeRange

logger = logging.getLogger(__name__)

CACHE_KEY = "review_stats:{time_range}"


def range_start(time_range: TimeRange, now: datetime) -> Optional[datetime]:
    """Начало диапазона: полночь сегодня, 7 или 30 дней назад; None для всего времени"""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range == TimeRange.TODAY:
        return midnight
    if time_range == TimeRange.LAST_7_DAYS:
        return midnight - timedelta(days=7)
    if time_range == TimeRange.LAST_30_DAYS:
        return midnight - timedelta(days=30)
    return None


class AnalyticsService:

    def __init__(self, cache, clock: Callable[[], datetime]):
        self.cache = cache
        self.clock = clock

    async def overview(self, db: AsyncSession, time_range: TimeRange = TimeRange.ALL) -> Dict[str, Any]:
        key = CACHE_KEY.format(time_range=time_range.value)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        stats = await self._compute(db, time_range)
        await self.cache.set(key, stats)
        logger.info(f"Review stats computed: range={time_range.value}")
        return stats

    async def invalidate(self) -> int:
        return await self.cache.clear_pattern(CACHE_KEY.format(time_range="*"))

    async def _compute(self, db: AsyncSession, time_range: TimeRange) -> Dict[str, Any]:
        now = self.clock()
        start = range_start(time_range, now)
        review_filters = [Review.created_at >= start] if start else []

        result = await db.execute(
            select(Review.status, func.count(Review.id))
            .where(*review_filters)
            .group_by(Review.status)
        )
        by_status = {status: count for status, count in result.all()}
        total = sum(by_status.values())
        active = by_status.get(ReviewStatus.ACTIVE.value, 0)

        avg_trust = (
            await db.execute(
                select(func.avg(Review.trust_score))
                .where(Review.status == ReviewStatus.ACTIVE.value, *review_filters)
            )
        ).scalar_one()

        reward_filters = [ReviewReward.created_at >= start] if start else []
        rewards = await db.execute(
            select(ReviewReward.status, func.count(ReviewReward.id), func.coalesce(func.sum(ReviewReward.coins_amount), 0))
            .where(*reward_filters)
            .group_by(ReviewReward.status)
        )
        reward_stats = {status: (count, coins) for status, count, coins in rewards.all()}

        total_reviewers = (await db.execute(select(func.count(ReviewerProfile.id)))).scalar_one()
        banned_reviewers = (
            await db.execute(select(func.count(ReviewerProfile.id)).where(ReviewerProfile.is_banned.is_(True)))
        ).scalar_one()

        return {
            "time_range": time_range.value,
            "generated_at": now.isoformat(),
            "reviews": {
                "total": total,
                "active": active,
                "flagged": by_status.get(ReviewStatus.FLAGGED.value, 0),
                "hidden": by_status.get(ReviewStatus.HIDDEN.value, 0),
                "deleted": by_status.get(ReviewStatus.DELETED.value, 0),
                "verified_percentage": round(active / total * 100, 1) if total else 0.0,
            },
            "trust": {
                "avg_trust_score": round(float(avg_trust), 1) if avg_trust is not None else 0.0,
            },
            "reviewers": {
                "total": total_reviewers,
                "banned": banned_reviewers,
            },
            "rewards": {
                "credited_count": reward_stats.get(RewardStatus.CREDITED.value, (0, 0))[0],
                "credited_coins": int(reward_stats.get(RewardStatus.CREDITED.value, (0, 0))[1]),
                "failed_count": reward_stats.get(RewardStatus.FAILED.value, (0, 0))[0],
                "reversed_count": reward_stats.get(RewardStatus.REVERSED.value, (0, 0))[0],
            },
        }
