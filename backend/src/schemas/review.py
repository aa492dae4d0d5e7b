# backend/src/schemas/review.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import Field
from .base import BaseSchema, TimestampSchema


class ReviewCreate(BaseSchema):
    """Схема для создания отзыва (диапазоны проверяет сервис)"""
    order_id: UUID
    sentiment: str
    rating: int
    food_quality_rating: int
    delivery_rating: int
    review_text: str
    photos: List[str] = Field(default_factory=list)


class HelpfulRequest(BaseSchema):
    is_helpful: bool


class ReportRequest(BaseSchema):
    reason: str = ""


class ResponseRequest(BaseSchema):
    """Ответ ресторана"""
    text: str = ""


class EligibilityResponse(BaseSchema):
    eligible: bool
    message: str
    reason: Optional[str] = None
    seconds_remaining: Optional[int] = None
    ban_expires_at: Optional[str] = None
    reward_range: Optional[str] = None


class ReviewSubmissionResponse(BaseSchema):
    review_id: UUID
    rating: int
    trust_score: int
    labels: List[str]
    coins_rewarded: int
    wallet_balance: Optional[int]
    reward_pending: bool = False


class ReviewResponse(TimestampSchema):
    """Схема ответа с отзывом"""
    id: UUID
    user_id: UUID
    restaurant_id: UUID
    order_id: UUID
    sentiment: str
    rating: int
    food_quality_rating: int
    delivery_rating: int
    review_text: str
    photos: List[str]
    trust_score: int
    labels: List[str]
    status: str
    helpful_count: int
    not_helpful_count: int
    report_count: int
    coins_rewarded: int
    response_text: Optional[str] = None
    responded_at: Optional[datetime] = None
    edited: bool = False


class AdminReviewResponse(ReviewResponse):
    """Отзыв со служебными полями для модераторов"""
    moderation_notes: Optional[str] = None
    device_fingerprint: Optional[str] = None
    ip_address: Optional[str] = None
    responded_by: Optional[UUID] = None
    reward_seed: Optional[int] = None


class PublicReviewResponse(ReviewResponse):
    """Отзыв в публичной ленте ресторана"""
    author_name: str
    reviewer_level: str
    reviewer_total_reviews: int


class MyReviewResponse(ReviewResponse):
    restaurant_name: str
    order_total: int


class ReviewListResponse(BaseSchema):
    reviews: List[PublicReviewResponse]
    total: int


class FeedbackCountsResponse(BaseSchema):
    helpful_count: int
    not_helpful_count: int


class ReportResultResponse(BaseSchema):
    report_count: int
    status: str
