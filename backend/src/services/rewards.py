# backend/src/services/rewards.py
"""
Награды за отзывы: розыгрыш суммы, зачисление в кошелёк и догоняющая сверка
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Config
from ..models import Review, ReviewReward, ReviewStatus, RewardStatus, TransactionType
from .wallet import WalletService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardTarget:
    """Поля отзыва, нужные для зачисления (не зависят от состояния сессии)"""
    review_id: UUID
    user_id: UUID
    order_id: UUID
    coins: int
    seed: Optional[int] = None
    device_fingerprint: Optional[str] = None
    ip_address: Optional[str] = None

    @classmethod
    def from_review(cls, review: Review) -> "RewardTarget":
        return cls(
            review_id=review.id,
            user_id=review.user_id,
            order_id=review.order_id,
            coins=review.coins_rewarded,
            seed=review.reward_seed,
            device_fingerprint=review.device_fingerprint,
            ip_address=review.ip_address,
        )

    @property
    def meta(self) -> dict:
        return {
            "device_fingerprint": self.device_fingerprint,
            "ip_address": self.ip_address,
            "random_seed": str(self.seed) if self.seed is not None else None,
        }


@dataclass
class RewardOutcome:
    coins: int
    wallet_balance: Optional[int]
    pending: bool = False


class RewardService:

    def __init__(
        self,
        settings: Config,
        wallets: WalletService,
        rng: random.Random,
        clock: Callable[[], datetime],
    ):
        self.settings = settings
        self.wallets = wallets
        self.rng = rng
        self.clock = clock

    def draw(self) -> Tuple[int, int]:
        """Случайная сумма награды и seed, по которому её можно воспроизвести"""
        seed = self.rng.getrandbits(32)
        amount = random.Random(seed).randint(self.settings.REWARD_MIN_COINS, self.settings.REWARD_MAX_COINS)
        return amount, seed

    @property
    def reward_range(self) -> str:
        return f"{self.settings.REWARD_MIN_COINS}-{self.settings.REWARD_MAX_COINS}"

    async def get_for_review(self, db: AsyncSession, review_id: UUID) -> Optional[ReviewReward]:
        result = await db.execute(
            select(ReviewReward)
            .where(ReviewReward.review_id == review_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def issue(self, db: AsyncSession, target: RewardTarget) -> RewardOutcome:
        """Начислить награду за сохранённый отзыв.

        Награда, зачисление и запись в истории кошелька идут одной транзакцией.
        Если она не прошла, отзыв остаётся, а награда ждёт reconcile().
        """
        try:
            balance = await self._credit(db, target, existing_id=None)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.critical(
                f"Reward credit failed, reconciliation required: "
                f"review={target.review_id}, user={target.user_id}, coins={target.coins}",
                exc_info=True,
            )
            await self._mark_failed(db, target)
            return RewardOutcome(coins=target.coins, wallet_balance=None, pending=True)

        logger.info(f"Reward credited: review={target.review_id}, user={target.user_id}, coins={target.coins}")
        return RewardOutcome(coins=target.coins, wallet_balance=balance)

    async def reconcile(self, db: AsyncSession) -> int:
        """Зачислить награды всем отзывам, у которых их нет или они не прошли"""
        settled = (
            select(ReviewReward.review_id)
            .where(ReviewReward.status.in_([RewardStatus.CREDITED.value, RewardStatus.REVERSED.value]))
        )
        result = await db.execute(
            select(Review)
            .where(
                Review.id.not_in(settled),
                Review.status != ReviewStatus.DELETED.value,
            )
            .order_by(Review.created_at.asc())
        )
        targets = [RewardTarget.from_review(review) for review in result.scalars().all()]

        reconciled = 0
        for target in targets:
            existing = await self.get_for_review(db, target.review_id)
            existing_id = existing.id if existing else None
            try:
                balance = await self._credit(db, target, existing_id=existing_id)
                if balance is None:
                    await db.rollback()
                    continue
                await db.commit()
            except SQLAlchemyError:
                await db.rollback()
                logger.exception(f"Reconciliation failed: review={target.review_id}")
                continue
            reconciled += 1
            logger.info(f"Reward reconciled: review={target.review_id}, coins={target.coins}")

        return reconciled

    async def _credit(self, db: AsyncSession, target: RewardTarget, existing_id: Optional[UUID]) -> Optional[int]:
        """Зачисление без commit; None, если награду уже зачислил другой запрос"""
        wallet = await self.wallets.get_or_create(db, target.user_id)
        now = self.clock()

        if existing_id is None:
            db.add(ReviewReward(
                user_id=target.user_id,
                review_id=target.review_id,
                coins_amount=target.coins,
                rupees_value=target.coins,
                status=RewardStatus.CREDITED.value,
                credited_at=now,
                created_at=now,
                expires_at=now + timedelta(days=self.settings.REWARD_EXPIRY_DAYS),
                meta=target.meta,
            ))
        else:
            # Захватываем незачисленную награду, чтобы не зачислить её дважды
            result = await db.execute(
                update(ReviewReward)
                .where(
                    ReviewReward.id == existing_id,
                    ReviewReward.status.in_([RewardStatus.PENDING.value, RewardStatus.FAILED.value]),
                )
                .values(status=RewardStatus.CREDITED.value, credited_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None

        return await self.wallets.credit(
            db,
            wallet.id,
            target.coins,
            type=TransactionType.REVIEW_REWARD,
            description=f"Review reward for order #{str(target.order_id)[-8:]}",
            reference_id=str(target.review_id),
        )

    async def _mark_failed(self, db: AsyncSession, target: RewardTarget) -> None:
        now = self.clock()
        db.add(ReviewReward(
            user_id=target.user_id,
            review_id=target.review_id,
            coins_amount=target.coins,
            rupees_value=target.coins,
            status=RewardStatus.FAILED.value,
            created_at=now,
            expires_at=now + timedelta(days=self.settings.REWARD_EXPIRY_DAYS),
            meta=target.meta,
        ))
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(f"Could not record failed reward: review={target.review_id}")
