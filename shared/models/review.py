import uuid
from sqlalchemy import (
    Column, String, Text, Integer, BigInteger, Boolean, DateTime, JSON,
    ForeignKey, Uuid, Index, UniqueConstraint, CheckConstraint
)
from .base import Base, TimestampMixin, utcnow
from .enums import ReviewStatus


class Review(Base, TimestampMixin):
    """Отзыв на заказ (не больше одного на заказ)"""
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False)

    # Содержимое отзыва
    sentiment = Column(String(20), nullable=False)  # thumbs_up / thumbs_down
    rating = Column(Integer, nullable=False)  # 1-5
    food_quality_rating = Column(Integer, nullable=False)
    delivery_rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=False)
    photos = Column(JSON, default=list, nullable=False)

    # Доверие
    trust_score = Column(Integer, default=50, nullable=False)
    labels = Column(JSON, default=list, nullable=False)

    # Модерация
    status = Column(String(20), default=ReviewStatus.ACTIVE.value, nullable=False)
    moderation_notes = Column(Text)

    # Взаимодействия (меняются только атомарными UPDATE)
    helpful_count = Column(Integer, default=0, nullable=False)
    not_helpful_count = Column(Integer, default=0, nullable=False)
    report_count = Column(Integer, default=0, nullable=False)

    # Награда, выпавшая при создании (повторно не разыгрывается)
    coins_rewarded = Column(Integer, nullable=False)
    reward_seed = Column(BigInteger, nullable=True)

    # Метаданные отправки
    device_fingerprint = Column(String(255))
    ip_address = Column(String(45))

    # Ответ ресторана
    response_text = Column(Text)
    responded_by = Column(Uuid)
    responded_at = Column(DateTime)

    # История правок
    edited = Column(Boolean, default=False, nullable=False)
    edit_history = Column(JSON, default=list, nullable=False)

    __table_args__ = (
        UniqueConstraint("order_id", name="uq_reviews_order_id"),
        CheckConstraint("trust_score >= 0 AND trust_score <= 100", name="ck_reviews_trust_score"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),
        CheckConstraint("food_quality_rating >= 1 AND food_quality_rating <= 5", name="ck_reviews_food_rating"),
        CheckConstraint("delivery_rating >= 1 AND delivery_rating <= 5", name="ck_reviews_delivery_rating"),
        Index("idx_review_restaurant_status", "restaurant_id", "status", "created_at"),
        Index("idx_review_user_date", "user_id", "created_at"),
        Index("idx_review_status_trust", "status", "trust_score"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, rating={self.rating}, status={self.status})>"


class ReviewReport(Base):
    """Жалоба на отзыв (одна от пользователя на отзыв)"""
    __tablename__ = "review_reports"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    reason = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("review_id", "reporter_id", name="uq_review_reports_reporter"),
    )
