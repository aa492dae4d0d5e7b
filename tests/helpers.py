# tests/helpers.py
import random
from datetime import datetime, timedelta
from itertools import count
from typing import List, Optional

from sqlalchemy import select

from backend.src.models import (
    User, Restaurant, Menu, Order, OrderItem, OrderStatus, UserRole,
)

T0 = datetime(2024, 5, 1, 12, 0, 0)
RNG_SEED = 1234


class FakeClock:
    """Управляемые часы для сервисов"""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def expected_rewards(n: int, seed: int = RNG_SEED, low: int = 1, high: int = 100) -> List[int]:
    """Те же розыгрыши, что делает RewardService с random.Random(seed)"""
    rng = random.Random(seed)
    return [random.Random(rng.getrandbits(32)).randint(low, high) for _ in range(n)]


async def reload(db, model, **filters):
    result = await db.execute(
        select(model).filter_by(**filters).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def reload_all(db, model, **filters):
    result = await db.execute(
        select(model).filter_by(**filters).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class Factory:
    """Тестовые данные внешних сервисов: пользователи, рестораны, заказы"""

    def __init__(self, db, clock: FakeClock):
        self.db = db
        self.clock = clock
        self._seq = count(1)

    async def user(
        self,
        name: str = "Ivan Petrov",
        role: UserRole = UserRole.CUSTOMER,
        verified: bool = True,
        with_email: bool = True,
        with_phone: bool = True,
    ) -> User:
        n = next(self._seq)
        user = User(
            name=name,
            role=role.value,
            is_verified=verified,
            phone=f"+7900000{n:04d}" if with_phone else None,
            email=f"user{n}@example.com" if with_email else None,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def restaurant(self, owner: Optional[User] = None) -> Menu:
        if owner is None:
            owner = await self.user(name="Owner Restaurant", role=UserRole.RESTAURANT)
        restaurant = Restaurant(name=f"Restaurant {next(self._seq)}", owner_id=owner.id)
        self.db.add(restaurant)
        await self.db.flush()
        menu = Menu(restaurant_id=restaurant.id, name="Pizza", price=500)
        self.db.add(menu)
        await self.db.commit()
        return menu

    async def order(
        self,
        user: User,
        menu: Optional[Menu] = None,
        status: OrderStatus = OrderStatus.DELIVERED,
        delivered_ago: Optional[timedelta] = timedelta(minutes=5),
        with_items: bool = True,
    ) -> Order:
        if menu is None:
            menu = await self.restaurant()
        delivered_at = None
        if status == OrderStatus.DELIVERED and delivered_ago is not None:
            delivered_at = self.clock() - delivered_ago
        order = Order(user_id=user.id, total=menu.price, status=status.value, delivered_at=delivered_at)
        self.db.add(order)
        await self.db.flush()
        if with_items:
            self.db.add(OrderItem(order_id=order.id, menu_id=menu.id, position=0, name=menu.name, price=menu.price))
        await self.db.commit()
        # позиции грузятся selectin-ом при следующем чтении
        result = await self.db.execute(
            select(Order).where(Order.id == order.id).execution_options(populate_existing=True)
        )
        return result.scalar_one()


class MonotonicClock:
    """Замена time.monotonic для кэша"""

    def __init__(self):
        self.value = 0.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds
