import uuid
from sqlalchemy import Column, String, DateTime, JSON, Uuid, Index, event
from .base import Base, utcnow


class ReviewAuditLog(Base):
    """Журнал аудита отзывов: записи только добавляются"""
    __tablename__ = "review_audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    review_id = Column(Uuid, nullable=True, index=True)  # пусто для банов ревьюера
    subject_user_id = Column(Uuid, nullable=True, index=True)  # автор отзыва / забаненный
    action_type = Column(String(30), nullable=False, index=True)
    performed_by_id = Column(Uuid, nullable=True, index=True)  # None для system
    performed_by_role = Column(String(20), nullable=False)
    details = Column(JSON, default=dict, nullable=False)
    ip_address = Column(String(45))
    device_fingerprint = Column(String(255))
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_review_date", "review_id", "created_at"),
        Index("idx_audit_action_date", "action_type", "created_at"),
    )

    def __repr__(self):
        return f"<ReviewAuditLog(review_id={self.review_id}, action={self.action_type})>"


class AuditLogImmutableError(RuntimeError):
    pass


@event.listens_for(ReviewAuditLog, "before_update")
def _forbid_update(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries are write-once")


@event.listens_for(ReviewAuditLog, "before_delete")
def _forbid_delete(mapper, connection, target):
    raise AuditLogImmutableError("Audit log entries cannot be deleted")
