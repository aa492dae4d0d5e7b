import uuid
from sqlalchemy import Column, String, Float, Integer, ForeignKey, Uuid
from .base import Base, TimestampMixin


class Restaurant(Base, TimestampMixin):
    """Ресторан (ведёт сервис ресторанов, здесь только чтение)"""
    __tablename__ = "restaurants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Float, default=4.0)

    def __repr__(self):
        return f"<Restaurant(id={self.id}, name={self.name[:30]})>"


class Menu(Base, TimestampMixin):
    """Позиция меню ресторана"""
    __tablename__ = "menus"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False, default=0)
