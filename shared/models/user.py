import uuid
from sqlalchemy import Column, String, Boolean, Uuid
from .base import Base, TimestampMixin
from .enums import UserRole


class User(Base, TimestampMixin):
    """Модель пользователя (ведёт сервис авторизации, здесь только чтение)"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), unique=True, nullable=True)
    role = Column(String(20), default=UserRole.CUSTOMER.value, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)  # телефон подтверждён через OTP
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def short_name(self) -> str:
        """Имя для публичных списков: "Иван П." """
        parts = (self.name or "").split()
        if not parts:
            return "Anonymous"
        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} {parts[1][0]}."

    def __repr__(self):
        return f"<User(id={self.id}, role={self.role})>"
