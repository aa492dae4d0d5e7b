# backend/src/services/lookups.py
"""
Чтение данных внешних сервисов: заказы, меню, рестораны, пользователи.
Здесь ничего не пишется.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User, Order, Menu, Restaurant, OrderStatus


class ExternalLookups:
    """Адаптер чтения внешних сущностей"""

    async def get_order(self, db: AsyncSession, order_id: UUID) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_restaurant(self, db: AsyncSession, restaurant_id: UUID) -> Optional[Restaurant]:
        result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
        return result.scalar_one_or_none()

    async def resolve_restaurant_id(self, db: AsyncSession, order: Order) -> Optional[UUID]:
        """Ресторан заказа: первая позиция -> меню -> ресторан"""
        if not order.items:
            return None

        result = await db.execute(
            select(Restaurant.id)
            .join(Menu, Menu.restaurant_id == Restaurant.id)
            .where(Menu.id == order.items[0].menu_id)
        )
        return result.scalar_one_or_none()

    async def count_delivered_orders(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(Order.id)).where(
                Order.user_id == user_id,
                Order.status == OrderStatus.DELIVERED.value,
            )
        )
        return result.scalar_one()
