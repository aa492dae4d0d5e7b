import uuid
from sqlalchemy import Column, String, ForeignKey, Uuid, UniqueConstraint
from .base import Base, TimestampMixin


class ReviewFeedback(Base, TimestampMixin):
    """Оценка полезности отзыва (одна от пользователя на отзыв)"""
    __tablename__ = "review_feedback"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    feedback_type = Column(String(20), nullable=False)  # helpful / not_helpful
    device_fingerprint = Column(String(255))
    ip_address = Column(String(45))

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_feedback_user"),
    )
