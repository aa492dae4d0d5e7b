# backend/src/routers/moderation.py
import math
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID
from ..dependencies import get_db_session, get_services, require_admin
from ..models import User, ReviewStatus, AuditAction, TimeRange
from ..schemas.moderation import (
    ApproveRequest, ReasonRequest, BanRequest, FlaggedReviewResponse, FlaggedListResponse,
    PagedReviewsResponse, AuditLogResponse, AuditLogPageResponse, ReviewDetailResponse,
    ModerationResultResponse, BanResultResponse, RewardReversalResponse, ReconcileResponse,
)
from ..schemas.review import AdminReviewResponse
from ..schemas.reviewer import AdminReviewerProfileResponse
from ..services import Services
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/reviews", tags=["Moderation"])


def _pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


@router.get("/flagged", response_model=FlaggedListResponse)
async def get_flagged_reviews(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Отзывы на модерации"""
    rows = await services.moderation.list_flagged(db)
    flagged = [
        FlaggedReviewResponse(
            **AdminReviewResponse.model_validate(review).model_dump(),
            reviewer_profile=AdminReviewerProfileResponse.model_validate(profile) if profile else None,
        )
        for review, profile in rows
    ]
    return FlaggedListResponse(flagged_reviews=flagged, total=len(flagged))


@router.get("/all", response_model=PagedReviewsResponse)
async def get_all_reviews(
    status: Optional[ReviewStatus] = Query(None),
    min_trust_score: Optional[int] = Query(None, ge=0, le=100),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Все отзывы с фильтрами"""
    reviews, total = await services.moderation.list_all(db, status, min_trust_score, page, limit)
    return PagedReviewsResponse(
        reviews=[AdminReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=page,
        pages=_pages(total, limit),
    )


@router.get("/audit-log", response_model=AuditLogPageResponse)
async def get_audit_log(
    review_id: Optional[UUID] = Query(None),
    action_type: Optional[AuditAction] = Query(None),
    performed_by: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Журнал аудита"""
    entries, total = await services.audit.search(
        db, review_id=review_id, action_type=action_type, performed_by_id=performed_by, page=page, limit=limit
    )
    return AuditLogPageResponse(
        entries=[AuditLogResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        pages=_pages(total, limit),
    )


@router.get("/stats/overview")
async def get_review_stats(
    time_range: TimeRange = Query(TimeRange.ALL),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Сводная статистика"""
    return await services.analytics.overview(db, time_range)


@router.post("/rewards/reconcile", response_model=ReconcileResponse)
async def reconcile_rewards(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Дозачислить награды, которые не прошли при создании отзывов"""
    count = await services.moderation.reconcile_rewards(db)
    return ReconcileResponse(reconciled=count)


@router.patch("/reviewer/{user_id}/ban", response_model=BanResultResponse)
async def ban_reviewer(
    user_id: UUID,
    payload: BanRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Забанить ревьюера"""
    profile = await services.moderation.ban_reviewer(db, user_id, admin, payload.reason, payload.duration_days)
    return BanResultResponse(message="Reviewer banned", profile=AdminReviewerProfileResponse.model_validate(profile))


@router.patch("/reviewer/{user_id}/unban", response_model=BanResultResponse)
async def unban_reviewer(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Разбанить ревьюера"""
    profile = await services.moderation.unban_reviewer(db, user_id, admin)
    return BanResultResponse(message="Reviewer unbanned", profile=AdminReviewerProfileResponse.model_validate(profile))


@router.get("/{review_id}", response_model=ReviewDetailResponse)
async def get_review_detail(
    review_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Отзыв с профилем автора и историей"""
    detail = await services.moderation.get_detail(db, review_id)
    return ReviewDetailResponse.model_validate(detail)


@router.patch("/{review_id}/approve", response_model=ModerationResultResponse)
async def approve_review(
    review_id: UUID,
    payload: Optional[ApproveRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Одобрить отзыв"""
    notes = payload.notes if payload else None
    review = await services.moderation.approve(db, review_id, admin, notes)
    return ModerationResultResponse(message="Review approved", review=AdminReviewResponse.model_validate(review))


@router.patch("/{review_id}/hide", response_model=ModerationResultResponse)
async def hide_review(
    review_id: UUID,
    payload: ReasonRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Скрыть отзыв"""
    result = await services.moderation.hide(db, review_id, admin, payload.reason)
    return ModerationResultResponse(
        message="Review hidden",
        review=AdminReviewResponse.model_validate(result["review"]),
        reviewer_banned=result["reviewer_banned"],
    )


@router.delete("/{review_id}", response_model=ModerationResultResponse)
async def delete_review(
    review_id: UUID,
    payload: ReasonRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Удалить отзыв (логически)"""
    result = await services.moderation.delete(db, review_id, admin, payload.reason)
    return ModerationResultResponse(
        message="Review deleted",
        review=AdminReviewResponse.model_validate(result["review"]),
        reviewer_banned=result["reviewer_banned"],
    )


@router.post("/{review_id}/reward/reverse", response_model=RewardReversalResponse)
async def reverse_reward(
    review_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Отозвать награду за отзыв"""
    result = await services.moderation.reverse_reward(db, review_id, admin)
    return RewardReversalResponse(**result)
