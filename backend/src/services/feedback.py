# backend/src/services/feedback.py
"""
Реакции сообщества на отзыв: полезность, жалобы и ответ ресторана
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..exceptions import ValidationFailed, NotFound, Forbidden, StateConflict
from ..models import (
    Review, ReviewFeedback, ReviewReport, User,
    ReviewStatus, FeedbackType, AuditAction, ActorRole, UserRole,
)
from ..policies import can_respond_to_review
from .audit import AuditService
from .lookups import ExternalLookups
from .reviewer_profile import ReviewerProfileService

logger = logging.getLogger(__name__)

MAX_RESPONSE_LENGTH = 1000


class FeedbackService:

    def __init__(
        self,
        settings: Config,
        lookups: ExternalLookups,
        profiles: ReviewerProfileService,
        audit: AuditService,
        clock: Callable[[], datetime],
    ):
        self.settings = settings
        self.lookups = lookups
        self.profiles = profiles
        self.audit = audit
        self.clock = clock

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

    async def mark_helpful(
        self,
        db: AsyncSession,
        review_id: UUID,
        user_id: UUID,
        is_helpful: bool,
        device_fingerprint: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, int]:
        """Голос "полезно / не полезно" (один на пользователя)"""
        review = await self.get_review(db, review_id)

        existing = await db.execute(
            select(ReviewFeedback.id).where(
                ReviewFeedback.review_id == review_id,
                ReviewFeedback.user_id == user_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise StateConflict("already_rated", "You have already rated this review")

        db.add(ReviewFeedback(
            review_id=review_id,
            user_id=user_id,
            feedback_type=(FeedbackType.HELPFUL if is_helpful else FeedbackType.NOT_HELPFUL).value,
            device_fingerprint=device_fingerprint,
            ip_address=ip_address,
        ))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise StateConflict("already_rated", "You have already rated this review")

        counter = Review.helpful_count if is_helpful else Review.not_helpful_count
        result = await db.execute(
            update(Review)
            .where(Review.id == review_id)
            .values({counter: counter + 1})
            .returning(Review.helpful_count, Review.not_helpful_count)
            .execution_options(synchronize_session=False)
        )
        helpful_count, not_helpful_count = result.one()

        if is_helpful:
            await self.profiles.record_helpful_vote(db, review.user_id)

        await db.commit()
        return {"helpful_count": helpful_count, "not_helpful_count": not_helpful_count}

    async def report(self, db: AsyncSession, review_id: UUID, user_id: UUID, reason: str) -> Dict[str, Any]:
        """Жалоба на отзыв; на пороге жалоб активный отзыв уходит на модерацию"""
        reason = (reason or "").strip()
        if len(reason) < self.settings.REPORT_MIN_REASON_LENGTH:
            raise ValidationFailed(
                "invalid_reason",
                f"Reason required (min {self.settings.REPORT_MIN_REASON_LENGTH} chars)",
            )

        await self.get_review(db, review_id)

        existing = await db.execute(
            select(ReviewReport.id).where(
                ReviewReport.review_id == review_id,
                ReviewReport.reporter_id == user_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise StateConflict("already_reported", "You have already reported this review")

        db.add(ReviewReport(review_id=review_id, reporter_id=user_id, reason=reason, created_at=self.clock()))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise StateConflict("already_reported", "You have already reported this review")

        result = await db.execute(
            update(Review)
            .where(Review.id == review_id)
            .values(report_count=Review.report_count + 1)
            .returning(Review.report_count)
            .execution_options(synchronize_session=False)
        )
        report_count = result.scalar_one()

        # Флаг ставит только тот запрос, чей UPDATE реально поменял статус
        flagged = await db.execute(
            update(Review)
            .where(
                Review.id == review_id,
                Review.status == ReviewStatus.ACTIVE.value,
                Review.report_count >= self.settings.REPORT_FLAG_THRESHOLD,
            )
            .values(status=ReviewStatus.FLAGGED.value)
            .execution_options(synchronize_session=False)
        )
        if flagged.rowcount == 1:
            self.audit.record(
                db,
                AuditAction.FLAGGED,
                review_id=review_id,
                performed_by_id=None,
                performed_by_role=ActorRole.SYSTEM,
                details={"auto_flagged": True, "report_count": report_count},
            )
            logger.warning(f"Review auto-flagged: review={review_id}, reports={report_count}")

        await db.commit()
        review = await self.get_review(db, review_id)
        return {"report_count": review.report_count, "status": review.status}

    async def respond(self, db: AsyncSession, review_id: UUID, caller: User, text: str) -> Review:
        """Ответ ресторана на отзыв (один на отзыв)"""
        text = (text or "").strip()
        if not 1 <= len(text) <= MAX_RESPONSE_LENGTH:
            raise ValidationFailed(
                "invalid_response", f"Response must be 1-{MAX_RESPONSE_LENGTH} characters"
            )

        review = await self.get_review(db, review_id)
        restaurant = await self.lookups.get_restaurant(db, review.restaurant_id)
        if not can_respond_to_review(caller, restaurant):
            raise Forbidden("forbidden", "Only the restaurant owner can respond to this review")

        now = self.clock()
        result = await db.execute(
            update(Review)
            .where(Review.id == review_id, Review.response_text.is_(None))
            .values(response_text=text, responded_by=caller.id, responded_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StateConflict("already_responded", "This review already has a response")

        role = ActorRole.ADMIN if caller.role == UserRole.ADMIN.value else ActorRole.RESTAURANT
        self.audit.record(
            db,
            AuditAction.RESPONDED,
            review_id=review_id,
            subject_user_id=review.user_id,
            performed_by_id=caller.id,
            performed_by_role=role,
            details={"response_length": len(text)},
        )
        await db.commit()
        logger.info(f"Review response added: review={review_id}, by={caller.id}")
        return await self.get_review(db, review_id)
