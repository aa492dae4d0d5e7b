import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin
from .enums import OrderStatus


class Order(Base, TimestampMixin):
    """Заказ (ведёт сервис заказов, здесь только чтение)"""
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    total = Column(Integer, nullable=False, default=0)
    status = Column(String(20), default=OrderStatus.PLACED.value, nullable=False, index=True)
    delivered_at = Column(DateTime, nullable=True)

    # Связи
    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        order_by="OrderItem.position",
    )

    @property
    def delivery_time(self):
        """Момент доставки; старые заказы хранят его только в updated_at"""
        return self.delivered_at or self.updated_at

    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status})>"


class OrderItem(Base):
    """Позиция заказа"""
    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(Uuid, ForeignKey("menus.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="items")
