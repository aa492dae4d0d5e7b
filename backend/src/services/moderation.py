# backend/src/services/moderation.py
"""
Админская модерация отзывов.

Переходы статусов:
    active  -> flagged (жалобы), hidden, deleted
    flagged -> active (approve), hidden, deleted
    hidden, deleted -> конечные

Каждое действие пишет ровно одну запись аудита в той же транзакции.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..exceptions import ValidationFailed, NotFound, StateConflict
from ..models import (
    Review, ReviewerProfile, ReviewReward, User,
    ReviewStatus, RewardStatus, AuditAction, ActorRole,
)
from .audit import AuditService
from .lookups import ExternalLookups
from .reviewer_profile import ReviewerProfileService
from .rewards import RewardService
from .wallet import WalletService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AuditAction.APPROVED: {ReviewStatus.FLAGGED.value},
    AuditAction.HIDDEN: {ReviewStatus.ACTIVE.value, ReviewStatus.FLAGGED.value},
    AuditAction.DELETED: {ReviewStatus.ACTIVE.value, ReviewStatus.FLAGGED.value},
}
TARGET_STATUS = {
    AuditAction.APPROVED: ReviewStatus.ACTIVE.value,
    AuditAction.HIDDEN: ReviewStatus.HIDDEN.value,
    AuditAction.DELETED: ReviewStatus.DELETED.value,
}
MAX_BAN_DAYS = 3650


class ModerationService:

    def __init__(
        self,
        settings: Config,
        lookups: ExternalLookups,
        profiles: ReviewerProfileService,
        wallets: WalletService,
        rewards: RewardService,
        audit: AuditService,
        clock: Callable[[], datetime],
    ):
        self.settings = settings
        self.lookups = lookups
        self.profiles = profiles
        self.wallets = wallets
        self.rewards = rewards
        self.audit = audit
        self.clock = clock

    # ---------- чтение ----------

    async def get_review(self, db: AsyncSession, review_id: UUID) -> Review:
        result = await db.execute(
            select(Review)
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if review is None:
            raise NotFound("review_not_found", "Review not found")
        return review

    async def list_flagged(self, db: AsyncSession) -> List[Tuple[Review, Optional[ReviewerProfile]]]:
        """Отзывы на модерации: сначала с большим числом жалоб"""
        result = await db.execute(
            select(Review, ReviewerProfile)
            .outerjoin(ReviewerProfile, ReviewerProfile.user_id == Review.user_id)
            .where(Review.status == ReviewStatus.FLAGGED.value)
            .order_by(Review.report_count.desc(), Review.created_at.desc())
        )
        return [(review, profile) for review, profile in result.all()]

    async def list_all(
        self,
        db: AsyncSession,
        status: Optional[ReviewStatus] = None,
        min_trust_score: Optional[int] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Review], int]:
        filters = []
        if status:
            filters.append(Review.status == status.value)
        if min_trust_score is not None:
            filters.append(Review.trust_score >= min_trust_score)

        total = (await db.execute(select(func.count(Review.id)).where(*filters))).scalar_one()
        result = await db.execute(
            select(Review)
            .where(*filters)
            .order_by(Review.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_detail(self, db: AsyncSession, review_id: UUID) -> Dict[str, Any]:
        """Отзыв, профиль автора, история его отзывов и журнал аудита"""
        review = await self.get_review(db, review_id)
        profile = await self.profiles.get(db, review.user_id)
        history = await db.execute(
            select(Review)
            .where(Review.user_id == review.user_id)
            .order_by(Review.created_at.desc())
        )
        return {
            "review": review,
            "reviewer_profile": profile,
            "user_review_history": list(history.scalars().all()),
            "audit_history": await self.audit.history(db, review_id),
        }

    # ---------- действия над отзывом ----------

    async def approve(self, db: AsyncSession, review_id: UUID, admin: User, notes: Optional[str] = None) -> Review:
        notes = (notes or "").strip() or "Approved by admin"
        review, previous = await self._transition(db, review_id, AuditAction.APPROVED, notes)
        self.audit.record(
            db,
            AuditAction.APPROVED,
            review_id=review_id,
            subject_user_id=review.user_id,
            performed_by_id=admin.id,
            performed_by_role=ActorRole.ADMIN,
            details={"previous_status": previous, "notes": notes},
        )
        await db.commit()
        logger.info(f"Review approved: review={review_id}, admin={admin.id}")
        return await self.get_review(db, review_id)

    async def hide(self, db: AsyncSession, review_id: UUID, admin: User, reason: str) -> Dict[str, Any]:
        reason = self._require_reason(reason, self.settings.HIDE_MIN_REASON_LENGTH)
        return await self._penalize(
            db, review_id, admin, AuditAction.HIDDEN,
            notes=reason, reason=reason, penalty=self.settings.HIDE_PENALTY_POINTS,
        )

    async def delete(self, db: AsyncSession, review_id: UUID, admin: User, reason: str) -> Dict[str, Any]:
        """Логическое удаление: строка остаётся ради аудита"""
        reason = self._require_reason(reason, self.settings.DELETE_MIN_REASON_LENGTH)
        return await self._penalize(
            db, review_id, admin, AuditAction.DELETED,
            notes=f"DELETED: {reason}", reason=reason, penalty=self.settings.DELETE_PENALTY_POINTS,
        )

    async def _penalize(
        self,
        db: AsyncSession,
        review_id: UUID,
        admin: User,
        action: AuditAction,
        *,
        notes: str,
        reason: str,
        penalty: int,
    ) -> Dict[str, Any]:
        now = self.clock()
        review, previous = await self._transition(db, review_id, action, notes)

        profile = await self.profiles.apply_penalty(db, review.user_id, penalty, now)
        banned = bool(profile and profile.is_banned)

        self.audit.record(
            db,
            action,
            review_id=review_id,
            subject_user_id=review.user_id,
            performed_by_id=admin.id,
            performed_by_role=ActorRole.ADMIN,
            details={
                "previous_status": previous,
                "reason": reason,
                "penalty_points": penalty,
                "reviewer_banned": banned,
            },
        )
        await db.commit()
        logger.warning(f"Review {action.value}: review={review_id}, admin={admin.id}, banned={banned}")
        return {"review": await self.get_review(db, review_id), "reviewer_banned": banned}

    async def _transition(
        self, db: AsyncSession, review_id: UUID, action: AuditAction, notes: str
    ) -> Tuple[Review, str]:
        """Сменить статус, если переход разрешён (без commit)"""
        review = await self.get_review(db, review_id)
        previous = review.status
        allowed = ALLOWED_TRANSITIONS[action]
        if previous not in allowed:
            raise StateConflict(
                "invalid_transition",
                f"Cannot move review from {previous} to {TARGET_STATUS[action]}",
                status_code=400,
            )

        # Условие по статусу защищает от параллельной модерации
        result = await db.execute(
            update(Review)
            .where(Review.id == review_id, Review.status.in_(allowed))
            .values(status=TARGET_STATUS[action], moderation_notes=notes, updated_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise StateConflict("invalid_transition", "Review status changed concurrently", status_code=400)
        return review, previous

    # ---------- ревьюеры ----------

    async def ban_reviewer(
        self, db: AsyncSession, user_id: UUID, admin: User, reason: str, duration_days: int = 30
    ) -> ReviewerProfile:
        reason = self._require_reason(reason, self.settings.BAN_MIN_REASON_LENGTH)
        if not 1 <= duration_days <= MAX_BAN_DAYS:
            raise ValidationFailed("invalid_duration", f"Ban duration must be 1-{MAX_BAN_DAYS} days")

        user = await self.lookups.get_user(db, user_id)
        if user is None:
            raise NotFound("user_not_found", "User not found")

        now = self.clock()
        profile = await self.profiles.get_or_create(db, user, now)
        expires_at = now + timedelta(days=duration_days)
        profile.ban(reason, expires_at)
        self.audit.record(
            db,
            AuditAction.BANNED,
            review_id=None,
            subject_user_id=user_id,
            performed_by_id=admin.id,
            performed_by_role=ActorRole.ADMIN,
            details={"reason": reason, "duration_days": duration_days, "ban_expires_at": expires_at.isoformat()},
        )
        await db.commit()
        logger.warning(f"Reviewer banned: user={user_id}, days={duration_days}, admin={admin.id}")
        return profile

    async def unban_reviewer(self, db: AsyncSession, user_id: UUID, admin: User) -> ReviewerProfile:
        profile = await self.profiles.get(db, user_id)
        if profile is None:
            raise NotFound("profile_not_found", "Reviewer profile not found")

        was_banned = profile.is_banned
        profile.clear_ban()
        self.audit.record(
            db,
            AuditAction.UNBANNED,
            review_id=None,
            subject_user_id=user_id,
            performed_by_id=admin.id,
            performed_by_role=ActorRole.ADMIN,
            details={"was_banned": was_banned},
        )
        await db.commit()
        logger.info(f"Reviewer unbanned: user={user_id}, admin={admin.id}")
        return profile

    # ---------- награды ----------

    async def reverse_reward(self, db: AsyncSession, review_id: UUID, admin: User) -> Dict[str, Any]:
        """Отозвать зачисленную награду (списание с кошелька без ухода в минус)"""
        review = await self.get_review(db, review_id)
        reward = await self.rewards.get_for_review(db, review_id)
        if reward is None:
            raise NotFound("reward_not_found", "Reward not found")
        if reward.status != RewardStatus.CREDITED.value:
            raise StateConflict(
                "invalid_transition", f"Cannot reverse a {reward.status} reward", status_code=400
            )

        wallet = await self.wallets.get(db, review.user_id)
        if wallet is None:
            raise NotFound("wallet_not_found", "Wallet not found")

        result = await db.execute(
            update(ReviewReward)
            .where(ReviewReward.id == reward.id, ReviewReward.status == RewardStatus.CREDITED.value)
            .values(status=RewardStatus.REVERSED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise StateConflict("invalid_transition", "Reward status changed concurrently", status_code=400)

        coins = reward.coins_amount
        balance = await self.wallets.debit(
            db,
            wallet.id,
            coins,
            description=f"Review reward reversed for review #{str(review_id)[-8:]}",
            reference_id=str(review_id),
        )
        if balance is None:
            await db.rollback()
            raise StateConflict("insufficient_balance", "Wallet balance is lower than the reward", status_code=400)

        self.audit.record(
            db,
            AuditAction.REWARD_REVERSED,
            review_id=review_id,
            subject_user_id=review.user_id,
            performed_by_id=admin.id,
            performed_by_role=ActorRole.ADMIN,
            details={"coins": coins},
        )
        await db.commit()
        logger.warning(f"Reward reversed: review={review_id}, coins={coins}, admin={admin.id}")
        return {"review_id": review_id, "coins_reversed": coins, "wallet_balance": balance}

    async def reconcile_rewards(self, db: AsyncSession) -> int:
        count = await self.rewards.reconcile(db)
        logger.info(f"Reward reconciliation finished: reconciled={count}")
        return count

    @staticmethod
    def _require_reason(reason: Optional[str], min_length: int) -> str:
        reason = (reason or "").strip()
        if len(reason) < min_length:
            raise ValidationFailed(
                "invalid_reason", f"Please provide a reason (minimum {min_length} characters)"
            )
        return reason
