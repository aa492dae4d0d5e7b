# backend/src/services/reviews.py
"""
Отправка отзыва и публичные выборки отзывов
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..exceptions import ValidationFailed, NotFound, StateConflict
from ..models import (
    Review, ReviewerProfile, Restaurant, User, Order,
    ReviewStatus, ReviewSort, Sentiment, AuditAction, ActorRole, ReviewerLevel,
)
from .abuse import collect_abuse_signals
from .audit import AuditService
from .eligibility import EligibilityGate
from .labels import assign_labels
from .lookups import ExternalLookups
from .reviewer_profile import ReviewerProfileService
from .rewards import RewardService, RewardTarget
from .trust import ReviewerSnapshot, compute_trust_score

logger = logging.getLogger(__name__)

SENTIMENTS = {s.value for s in Sentiment}

SORT_ORDER = {
    ReviewSort.RECENT: (Review.created_at.desc(),),
    ReviewSort.HELPFUL: (Review.helpful_count.desc(), Review.created_at.desc()),
    ReviewSort.RATING_HIGH: (Review.rating.desc(), Review.created_at.desc()),
    ReviewSort.RATING_LOW: (Review.rating.asc(), Review.created_at.desc()),
}


@dataclass
class SubmissionResult:
    review_id: UUID
    rating: int
    trust_score: int
    labels: List[str]
    coins_rewarded: int
    wallet_balance: Optional[int]
    reward_pending: bool = False


@dataclass
class ReviewSubmission:
    """Данные отзыва от клиента"""
    order_id: UUID
    sentiment: str
    rating: int
    food_quality_rating: int
    delivery_rating: int
    review_text: str
    photos: List[str] = field(default_factory=list)
    device_fingerprint: Optional[str] = None
    ip_address: Optional[str] = None


class ReviewService:

    def __init__(
        self,
        settings: Config,
        lookups: ExternalLookups,
        gate: EligibilityGate,
        profiles: ReviewerProfileService,
        rewards: RewardService,
        audit: AuditService,
        clock: Callable[[], datetime],
    ):
        self.settings = settings
        self.lookups = lookups
        self.gate = gate
        self.profiles = profiles
        self.rewards = rewards
        self.audit = audit
        self.clock = clock

    def validate(self, data: ReviewSubmission) -> str:
        """Проверка ввода до любых обращений к БД; возвращает очищенный текст"""
        if data.sentiment not in SENTIMENTS:
            raise ValidationFailed("invalid_sentiment", "Please select thumbs up or thumbs down")

        for name in ("rating", "food_quality_rating", "delivery_rating"):
            value = getattr(data, name)
            if not isinstance(value, int) or not 1 <= value <= 5:
                raise ValidationFailed("invalid_rating", f"{name} must be between 1 and 5")

        text = (data.review_text or "").strip()
        if len(text) < max(self.settings.REVIEW_MIN_TEXT_LENGTH, 1):
            raise ValidationFailed(
                "text_too_short",
                "Please write something about your experience",
                details={"min_length": self.settings.REVIEW_MIN_TEXT_LENGTH},
            )
        if len(text) > self.settings.REVIEW_MAX_TEXT_LENGTH:
            raise ValidationFailed(
                "text_too_long",
                f"Review text must be at most {self.settings.REVIEW_MAX_TEXT_LENGTH} characters",
            )

        if len(data.photos or []) > self.settings.REVIEW_MAX_PHOTOS:
            raise ValidationFailed(
                "too_many_photos", f"At most {self.settings.REVIEW_MAX_PHOTOS} photos are allowed"
            )
        return text

    async def submit(self, db: AsyncSession, caller: User, data: ReviewSubmission) -> SubmissionResult:
        """Создать отзыв, начислить награду и обновить профиль автора"""
        text = self.validate(data)

        # Повторяем все проверки допуска, даже если клиент уже спрашивал
        eligibility = await self.gate.check(db, data.order_id, caller.id)
        if not eligibility.eligible:
            raise eligibility.to_error()
        order, user = eligibility.order, eligibility.user
        # после rollback ORM-объекты протухают, поэтому id берём заранее
        user_id, order_id = user.id, order.id

        restaurant_id = await self.lookups.resolve_restaurant_id(db, order)
        if restaurant_id is None:
            raise NotFound("restaurant_not_found", "Restaurant not found")

        now = self.clock()
        profile = await self.profiles.get_or_create(db, user, now)
        snapshot = ReviewerSnapshot.from_profile(profile, now)
        trust_score = compute_trust_score(snapshot, text)
        labels = assign_labels(snapshot, trust_score)
        coins, seed = self.rewards.draw()
        signals = await collect_abuse_signals(db, user_id, data.device_fingerprint, data.ip_address)

        review = Review(
            id=uuid.uuid4(),
            user_id=user_id,
            restaurant_id=restaurant_id,
            order_id=order_id,
            sentiment=data.sentiment,
            rating=data.rating,
            food_quality_rating=data.food_quality_rating,
            delivery_rating=data.delivery_rating,
            review_text=text,
            photos=list(data.photos or []),
            trust_score=trust_score,
            labels=labels,
            status=ReviewStatus.ACTIVE.value,
            coins_rewarded=coins,
            reward_seed=seed,
            device_fingerprint=data.device_fingerprint,
            ip_address=data.ip_address,
            edit_history=[],
            created_at=now,
            updated_at=now,
        )
        db.add(review)
        self.audit.record(
            db,
            AuditAction.CREATED,
            review_id=review.id,
            subject_user_id=user_id,
            performed_by_id=user_id,
            performed_by_role=ActorRole.USER,
            details={
                "sentiment": data.sentiment,
                "trust_score": trust_score,
                "coins_rewarded": coins,
                "abuse_signals": signals,
            },
            ip_address=data.ip_address,
            device_fingerprint=data.device_fingerprint,
        )
        try:
            await db.commit()
        except IntegrityError:
            # Параллельный запрос успел создать отзыв на этот заказ
            await db.rollback()
            raise StateConflict("already_reviewed", "You have already reviewed this order")

        result = SubmissionResult(
            review_id=review.id,
            rating=data.rating,
            trust_score=trust_score,
            labels=labels,
            coins_rewarded=coins,
            wallet_balance=None,
        )
        logger.info(
            f"Review created: review={result.review_id}, user={user_id}, "
            f"order={order_id}, trust={trust_score}"
        )

        outcome = await self.rewards.issue(db, RewardTarget.from_review(review))
        result.wallet_balance = outcome.wallet_balance
        result.reward_pending = outcome.pending

        await self._update_profile(db, user_id, trust_score, coins, data, text, now)
        return result

    async def _update_profile(
        self,
        db: AsyncSession,
        user_id: UUID,
        trust_score: int,
        coins: int,
        data: ReviewSubmission,
        text: str,
        now: datetime,
    ) -> None:
        # Профиль производный: ошибка здесь не отменяет отзыв
        try:
            delivered = await self.lookups.count_delivered_orders(db, user_id)
            await self.profiles.apply_submission(
                db,
                user_id,
                trust_score=trust_score,
                coins=coins,
                has_photos=bool(data.photos),
                text_length=len(text),
                delivered_orders=delivered,
                device_fingerprint=data.device_fingerprint,
                ip_address=data.ip_address,
                now=now,
            )
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(f"Reviewer profile update failed: user={user_id}")

    async def list_for_restaurant(
        self,
        db: AsyncSession,
        restaurant_id: UUID,
        sort: ReviewSort = ReviewSort.RECENT,
        min_trust_score: int = 0,
    ) -> List[Dict[str, Any]]:
        """Активные отзывы ресторана с уровнем автора"""
        result = await db.execute(
            select(Review, User, ReviewerProfile)
            .join(User, User.id == Review.user_id)
            .outerjoin(ReviewerProfile, ReviewerProfile.user_id == Review.user_id)
            .where(
                Review.restaurant_id == restaurant_id,
                Review.status == ReviewStatus.ACTIVE.value,
                Review.trust_score >= min_trust_score,
            )
            .order_by(*SORT_ORDER[sort])
        )

        reviews = []
        for review, author, profile in result.all():
            reviews.append({
                "review": review,
                "author_id": author.id,
                "author_name": author.short_name,
                "reviewer_level": profile.reviewer_level if profile else ReviewerLevel.BRONZE.value,
                "reviewer_total_reviews": profile.total_reviews if profile else 1,
            })
        return reviews

    async def list_mine(self, db: AsyncSession, user_id: UUID) -> List[Dict[str, Any]]:
        """Все отзывы пользователя с названием ресторана и суммой заказа"""
        result = await db.execute(
            select(Review, Restaurant.name, Order.total)
            .join(Restaurant, Restaurant.id == Review.restaurant_id)
            .join(Order, Order.id == Review.order_id)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc())
        )
        return [
            {"review": review, "restaurant_name": name, "order_total": total}
            for review, name, total in result.all()
        ]
