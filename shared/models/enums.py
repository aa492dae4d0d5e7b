from enum import Enum


class UserRole(str, Enum):
    """Роли пользователей"""
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Статусы заказа (ведёт сервис заказов)"""
    PLACED = "placed"
    PREPARING = "preparing"
    DELIVERED = "delivered"


class ReviewStatus(str, Enum):
    """Статусы модерации отзывов"""
    ACTIVE = "active"
    HIDDEN = "hidden"
    FLAGGED = "flagged"
    DELETED = "deleted"


class Sentiment(str, Enum):
    """Эмодзи-оценка заказа"""
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


class ReviewLabel(str, Enum):
    VERIFIED_ORDER = "verified_order"
    FIRST_REVIEW = "first_review"
    FREQUENT_CUSTOMER = "frequent_customer"
    TRUSTED_REVIEWER = "trusted_reviewer"
    HIGH_VALUE_CUSTOMER = "high_value_customer"
    LOW_CONFIDENCE = "low_confidence"


class ReviewSort(str, Enum):
    RECENT = "recent"
    HELPFUL = "helpful"
    RATING_HIGH = "rating_high"
    RATING_LOW = "rating_low"


class FeedbackType(str, Enum):
    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"


class ReviewerLevel(str, Enum):
    """Уровни репутации ревьюера (по возрастанию)"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    ELITE = "elite"


class RewardStatus(str, Enum):
    PENDING = "pending"
    CREDITED = "credited"
    FAILED = "failed"
    REVERSED = "reversed"


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    REVIEW_REWARD = "review_reward"
    ORDER_PAYMENT = "order_payment"
    WITHDRAWAL = "withdrawal"


class AuditAction(str, Enum):
    """Типы записей журнала аудита"""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    FLAGGED = "flagged"
    HIDDEN = "hidden"
    RESTORED = "restored"
    RESPONDED = "responded"
    ADMIN_ACTION = "admin_action"
    APPROVED = "approved"
    BANNED = "banned"
    UNBANNED = "unbanned"
    REWARD_REVERSED = "reward_reversed"


class ActorRole(str, Enum):
    """Кто выполнил действие (для аудита)"""
    USER = "user"
    RESTAURANT = "restaurant"
    ADMIN = "admin"
    SYSTEM = "system"


class TimeRange(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    ALL = "all"
