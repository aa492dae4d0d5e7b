"""
Pydantic схемы для API
"""

from .base import BaseSchema, TimestampSchema
from .review import (
    ReviewCreate, HelpfulRequest, ReportRequest, ResponseRequest, EligibilityResponse,
    ReviewSubmissionResponse, ReviewResponse, AdminReviewResponse, PublicReviewResponse,
    MyReviewResponse, ReviewListResponse, FeedbackCountsResponse, ReportResultResponse,
)
from .reviewer import ReviewerProfileResponse, AdminReviewerProfileResponse
from .wallet import WalletResponse, WalletTransactionResponse, TransactionListResponse
from .moderation import (
    ApproveRequest, ReasonRequest, BanRequest, FlaggedReviewResponse, FlaggedListResponse,
    PagedReviewsResponse, ReviewHistoryItem, AuditLogResponse, AuditLogPageResponse,
    ReviewDetailResponse, ModerationResultResponse, BanResultResponse,
    RewardReversalResponse, ReconcileResponse,
)
