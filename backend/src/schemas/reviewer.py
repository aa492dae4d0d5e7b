# backend/src/schemas/reviewer.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from .base import BaseSchema


class TrackedEntry(BaseSchema):
    value: str
    first_seen: str
    last_seen: str
    review_count: int


class ReviewerProfileResponse(BaseSchema):
    """Профиль ревьюера, видимый самому пользователю"""
    user_id: UUID
    verified_mobile: bool
    verified_email: bool
    total_reviews: int
    total_orders: int
    helpful_reviews: int
    total_helpful_votes: int
    flagged_reviews: int
    last_review_date: Optional[datetime] = None
    avg_trust_score: float
    reviewer_level: str
    total_points: int
    total_coins_earned: int
    is_banned: bool
    ban_reason: Optional[str] = None
    ban_expires_at: Optional[datetime] = None
    warning_count: int
    created_at: datetime


class AdminReviewerProfileResponse(ReviewerProfileResponse):
    """Для админки: плюс устройства и IP"""
    devices: List[TrackedEntry] = []
    ip_addresses: List[TrackedEntry] = []
