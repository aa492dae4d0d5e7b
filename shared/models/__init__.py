from .base import Base, TimestampMixin, utcnow
from .user import User
from .order import Order, OrderItem
from .restaurant import Restaurant, Menu
from .review import Review, ReviewReport
from .reviewer_profile import ReviewerProfile, level_case, TRUSTED_LEVELS
from .reward import ReviewReward
from .feedback import ReviewFeedback
from .audit_log import ReviewAuditLog, AuditLogImmutableError
from .wallet import Wallet, WalletTransaction
from .enums import (
    UserRole, OrderStatus, ReviewStatus, Sentiment, ReviewLabel, ReviewSort,
    FeedbackType, ReviewerLevel, RewardStatus, TransactionType, AuditAction,
    ActorRole, TimeRange,
)

__all__ = [
    'Base', 'TimestampMixin', 'utcnow',
    'User', 'Order', 'OrderItem', 'Restaurant', 'Menu',
    'Review', 'ReviewReport', 'ReviewerProfile', 'ReviewReward', 'ReviewFeedback',
    'ReviewAuditLog', 'AuditLogImmutableError', 'Wallet', 'WalletTransaction',
    'level_case', 'TRUSTED_LEVELS',
    'UserRole', 'OrderStatus', 'ReviewStatus', 'Sentiment', 'ReviewLabel', 'ReviewSort',
    'FeedbackType', 'ReviewerLevel', 'RewardStatus', 'TransactionType', 'AuditAction',
    'ActorRole', 'TimeRange',
]
