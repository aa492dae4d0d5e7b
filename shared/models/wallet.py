import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, Index, CheckConstraint
from .base import Base, TimestampMixin, utcnow


class Wallet(Base, TimestampMixin):
    """Кошелёк пользователя: balance = total_earned - total_spent"""
    __tablename__ = "wallets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, unique=True)
    balance = Column(Integer, default=0, nullable=False)
    total_earned = Column(Integer, default=0, nullable=False)
    total_spent = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    def __repr__(self):
        return f"<Wallet(user_id={self.user_id}, balance={self.balance})>"


class WalletTransaction(Base):
    """Операция по кошельку (только добавляются)"""
    __tablename__ = "wallet_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id = Column(Uuid, ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    description = Column(String(255))
    reference_id = Column(String(64))  # id отзыва, заказа и т.п.
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_wallet_tx_wallet_date", "wallet_id", "created_at"),
    )
