# backend/src/routers/reviews.py
from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
from ..dependencies import (
    get_db_session, get_services, get_current_user, require_capability,
    get_device_fingerprint, get_client_ip,
)
from ..models import User, ReviewSort
from ..policies import Capability
from ..schemas.review import (
    ReviewCreate, HelpfulRequest, ReportRequest, ResponseRequest,
    EligibilityResponse, ReviewSubmissionResponse, ReviewResponse,
    PublicReviewResponse, MyReviewResponse, ReviewListResponse,
    FeedbackCountsResponse, ReportResultResponse,
)
from ..schemas.reviewer import ReviewerProfileResponse
from ..services import Services, ReviewSubmission
from ..services.eligibility import EligibilityResult
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reviews", tags=["Reviews"])

ELIGIBILITY_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
}


def _eligibility_response(result: EligibilityResult):
    body = EligibilityResponse(**result.to_dict()).model_dump(exclude_none=True)
    return JSONResponse(status_code=ELIGIBILITY_STATUS.get(result.reason, status.HTTP_200_OK), content=body)


@router.get("/eligibility/{order_id}", response_model=EligibilityResponse)
async def check_eligibility(
    order_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Можно ли оставить отзыв на заказ"""
    result = await services.eligibility.check(db, order_id, current_user.id)
    return _eligibility_response(result)


@router.post("/", response_model=ReviewSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(require_capability(Capability.SUBMIT_REVIEW)),
    device_fingerprint: str = Depends(get_device_fingerprint),
    ip_address: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Создать отзыв"""
    submission = ReviewSubmission(
        **review_data.model_dump(),
        device_fingerprint=device_fingerprint,
        ip_address=ip_address,
    )
    result = await services.reviews.submit(db, current_user, submission)
    return ReviewSubmissionResponse.model_validate(result)


@router.get("/restaurant/{restaurant_id}", response_model=ReviewListResponse)
async def get_reviews_by_restaurant(
    restaurant_id: UUID,
    sort: ReviewSort = Query(ReviewSort.RECENT),
    min_trust_score: int = Query(0, ge=0, le=100),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Получить отзывы ресторана"""
    rows = await services.reviews.list_for_restaurant(db, restaurant_id, sort, min_trust_score)
    reviews = [
        PublicReviewResponse(
            **ReviewResponse.model_validate(row.pop("review")).model_dump(),
            **row,
        )
        for row in rows
    ]
    return ReviewListResponse(reviews=reviews, total=len(reviews))


@router.post("/{review_id}/helpful", response_model=FeedbackCountsResponse)
async def mark_helpful(
    review_id: UUID,
    payload: HelpfulRequest,
    current_user: User = Depends(require_capability(Capability.RATE_REVIEW)),
    device_fingerprint: str = Depends(get_device_fingerprint),
    ip_address: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Отметить отзыв полезным / бесполезным"""
    counts = await services.feedback.mark_helpful(
        db, review_id, current_user.id, payload.is_helpful, device_fingerprint, ip_address
    )
    return FeedbackCountsResponse(**counts)


@router.post("/{review_id}/report", response_model=ReportResultResponse)
async def report_review(
    review_id: UUID,
    payload: ReportRequest,
    current_user: User = Depends(require_capability(Capability.REPORT_REVIEW)),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Пожаловаться на отзыв"""
    result = await services.feedback.report(db, review_id, current_user.id, payload.reason)
    return ReportResultResponse(**result)


@router.post("/{review_id}/response", response_model=ReviewResponse)
async def respond_to_review(
    review_id: UUID,
    payload: ResponseRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Ответ ресторана на отзыв"""
    review = await services.feedback.respond(db, review_id, current_user, payload.text)
    return ReviewResponse.model_validate(review)


@router.get("/my-reviews", response_model=list[MyReviewResponse])
async def get_my_reviews(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Мои отзывы"""
    rows = await services.reviews.list_mine(db, current_user.id)
    return [
        MyReviewResponse(
            **ReviewResponse.model_validate(row.pop("review")).model_dump(),
            **row,
        )
        for row in rows
    ]


@router.get("/reviewer-profile", response_model=ReviewerProfileResponse)
async def get_reviewer_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Мой профиль ревьюера (создаётся при первом запросе)"""
    profile = await services.profiles.get_or_create(db, current_user, services.reviews.clock())
    return ReviewerProfileResponse.model_validate(profile)
