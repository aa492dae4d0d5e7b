# backend/src/models/__init__.py
# Реэкспортируем модели из shared
from shared.models import (
    Base, User, Order, OrderItem, Restaurant, Menu,
    Review, ReviewReport, ReviewerProfile, ReviewReward, ReviewFeedback,
    ReviewAuditLog, AuditLogImmutableError, Wallet, WalletTransaction,
    level_case, TRUSTED_LEVELS, utcnow,
)
from shared.models.enums import (
    UserRole, OrderStatus, ReviewStatus, Sentiment, ReviewLabel, ReviewSort,
    FeedbackType, ReviewerLevel, RewardStatus, TransactionType, AuditAction,
    ActorRole, TimeRange,
)

__all__ = [
    'Base', 'User', 'Order', 'OrderItem', 'Restaurant', 'Menu',
    'Review', 'ReviewReport', 'ReviewerProfile', 'ReviewReward', 'ReviewFeedback',
    'ReviewAuditLog', 'AuditLogImmutableError', 'Wallet', 'WalletTransaction',
    'level_case', 'TRUSTED_LEVELS', 'utcnow',
    'UserRole', 'OrderStatus', 'ReviewStatus', 'Sentiment', 'ReviewLabel', 'ReviewSort',
    'FeedbackType', 'ReviewerLevel', 'RewardStatus', 'TransactionType', 'AuditAction',
    'ActorRole', 'TimeRange',
]
