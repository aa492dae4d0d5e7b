# backend/src/services/labels.py
from typing import List

from ..models import ReviewLabel, TRUSTED_LEVELS
from .trust import ReviewerSnapshot

FREQUENT_CUSTOMER_REVIEWS = 10
HIGH_VALUE_ORDERS = 20
LOW_CONFIDENCE_SCORE = 40


def assign_labels(snapshot: ReviewerSnapshot, trust_score: int) -> List[str]:
    """Метки отзыва в фиксированном порядке"""
    labels = [ReviewLabel.VERIFIED_ORDER.value]

    if snapshot.total_reviews == 0:
        labels.append(ReviewLabel.FIRST_REVIEW.value)
    if snapshot.total_reviews >= FREQUENT_CUSTOMER_REVIEWS:
        labels.append(ReviewLabel.FREQUENT_CUSTOMER.value)
    if snapshot.reviewer_level in TRUSTED_LEVELS:
        labels.append(ReviewLabel.TRUSTED_REVIEWER.value)
    if snapshot.total_orders >= HIGH_VALUE_ORDERS:
        labels.append(ReviewLabel.HIGH_VALUE_CUSTOMER.value)
    if trust_score < LOW_CONFIDENCE_SCORE:
        labels.append(ReviewLabel.LOW_CONFIDENCE.value)

    return labels
