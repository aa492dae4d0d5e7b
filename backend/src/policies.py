# backend/src/policies.py
"""
Права ролей на операции с отзывами
"""

from enum import Enum

from .models import User, Restaurant, UserRole


class Capability(str, Enum):
    SUBMIT_REVIEW = "submit_review"
    RATE_REVIEW = "rate_review"
    REPORT_REVIEW = "report_review"
    RESPOND_TO_REVIEW = "respond_to_review"
    VIEW_WALLET = "view_wallet"
    MODERATE_REVIEWS = "moderate_reviews"
    BAN_REVIEWERS = "ban_reviewers"
    MANAGE_REWARDS = "manage_rewards"
    VIEW_ANALYTICS = "view_analytics"


ROLE_CAPABILITIES = {
    UserRole.CUSTOMER.value: {
        Capability.SUBMIT_REVIEW,
        Capability.RATE_REVIEW,
        Capability.REPORT_REVIEW,
        Capability.VIEW_WALLET,
    },
    UserRole.RESTAURANT.value: {
        Capability.RATE_REVIEW,
        Capability.REPORT_REVIEW,
        Capability.RESPOND_TO_REVIEW,
        Capability.VIEW_WALLET,
    },
    UserRole.ADMIN.value: set(Capability),
}


def has_capability(user: User, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(user.role, set())


def can_respond_to_review(user: User, restaurant: Restaurant) -> bool:
    """Отвечать может владелец ресторана или админ"""
    if user.role == UserRole.ADMIN.value:
        return True
    return (
        has_capability(user, Capability.RESPOND_TO_REVIEW)
        and restaurant is not None
        and restaurant.owner_id == user.id
    )
