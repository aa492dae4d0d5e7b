# backend/src/schemas/moderation.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import Field
from .base import BaseSchema
from .review import AdminReviewResponse
from .reviewer import AdminReviewerProfileResponse


class ApproveRequest(BaseSchema):
    notes: Optional[str] = None


class ReasonRequest(BaseSchema):
    """Причина скрытия / удаления"""
    reason: str = ""


class BanRequest(BaseSchema):
    reason: str = ""
    duration_days: int = Field(default=30)


class FlaggedReviewResponse(AdminReviewResponse):
    reviewer_profile: Optional[AdminReviewerProfileResponse] = None


class FlaggedListResponse(BaseSchema):
    flagged_reviews: List[FlaggedReviewResponse]
    total: int


class PagedReviewsResponse(BaseSchema):
    reviews: List[AdminReviewResponse]
    total: int
    page: int
    pages: int


class ReviewHistoryItem(BaseSchema):
    id: UUID
    rating: int
    trust_score: int
    status: str
    created_at: datetime


class AuditLogResponse(BaseSchema):
    id: UUID
    review_id: Optional[UUID] = None
    subject_user_id: Optional[UUID] = None
    action_type: str
    performed_by_id: Optional[UUID] = None
    performed_by_role: str
    details: Dict[str, Any]
    ip_address: Optional[str] = None
    device_fingerprint: Optional[str] = None
    created_at: datetime


class AuditLogPageResponse(BaseSchema):
    entries: List[AuditLogResponse]
    total: int
    page: int
    pages: int


class ReviewDetailResponse(BaseSchema):
    review: AdminReviewResponse
    reviewer_profile: Optional[AdminReviewerProfileResponse] = None
    user_review_history: List[ReviewHistoryItem]
    audit_history: List[AuditLogResponse]


class ModerationResultResponse(BaseSchema):
    message: str
    review: AdminReviewResponse
    reviewer_banned: bool = False


class BanResultResponse(BaseSchema):
    message: str
    profile: AdminReviewerProfileResponse


class RewardReversalResponse(BaseSchema):
    review_id: UUID
    coins_reversed: int
    wallet_balance: int


class ReconcileResponse(BaseSchema):
    reconciled: int
