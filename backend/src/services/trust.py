# backend/src/services/trust.py
"""
Расчёт доверия к отзыву (0-100).

Чистые функции: на вход снимок профиля ревьюера и текст отзыва.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import ReviewerProfile, ReviewerLevel

BASE_SCORE = 50
MAX_AGE_BONUS = 15
MAX_ORDERS_BONUS = 15
MAX_QUALITY_BONUS = 10
VERIFIED_MOBILE_BONUS = 5
VERIFIED_EMAIL_BONUS = 5
LONG_TEXT_WORDS, LONG_TEXT_BONUS = 50, 10
MEDIUM_TEXT_WORDS, MEDIUM_TEXT_BONUS = 30, 5


@dataclass(frozen=True)
class ReviewerSnapshot:
    """Значения профиля на момент отправки отзыва"""
    account_age_days: int = 0
    total_orders: int = 0
    total_reviews: int = 0
    avg_trust_score: float = 50.0
    verified_mobile: bool = False
    verified_email: bool = False
    reviewer_level: str = ReviewerLevel.BRONZE.value

    @classmethod
    def from_profile(cls, profile: Optional[ReviewerProfile], now: datetime) -> "ReviewerSnapshot":
        if profile is None:
            return cls()
        return cls(
            account_age_days=profile.account_age_days(now),
            total_orders=profile.total_orders or 0,
            total_reviews=profile.total_reviews or 0,
            avg_trust_score=profile.avg_trust_score if profile.avg_trust_score is not None else 50.0,
            verified_mobile=bool(profile.verified_mobile),
            verified_email=bool(profile.verified_email),
            reviewer_level=profile.reviewer_level or ReviewerLevel.BRONZE.value,
        )


def word_count(text: str) -> int:
    return len((text or "").split())


def text_bonus(text: str) -> int:
    words = word_count(text)
    if words >= LONG_TEXT_WORDS:
        return LONG_TEXT_BONUS
    if words >= MEDIUM_TEXT_WORDS:
        return MEDIUM_TEXT_BONUS
    return 0


def compute_trust_score(snapshot: ReviewerSnapshot, text: str) -> int:
    """Итоговый балл доверия, всегда в [0, 100]"""
    score = float(BASE_SCORE)

    # Возраст аккаунта
    score += min(max(snapshot.account_age_days, 0) / 10, MAX_AGE_BONUS)

    # История заказов
    if snapshot.total_orders > 0:
        score += min(snapshot.total_orders * 2, MAX_ORDERS_BONUS)

    # Качество прошлых отзывов
    if snapshot.avg_trust_score > 50:
        score += min((snapshot.avg_trust_score - 50) / 5, MAX_QUALITY_BONUS)

    if snapshot.verified_mobile:
        score += VERIFIED_MOBILE_BONUS
    if snapshot.verified_email:
        score += VERIFIED_EMAIL_BONUS

    score += text_bonus(text)

    rounded = math.floor(score + 0.5)
    return max(0, min(100, rounded))
