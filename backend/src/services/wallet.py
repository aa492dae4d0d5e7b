# backend/src/services/wallet.py
"""
Кошелёк: баланс меняется только атомарными UPDATE вместе с total_earned/total_spent
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Wallet, WalletTransaction, TransactionType

logger = logging.getLogger(__name__)


class WalletService:

    async def get(self, db: AsyncSession, user_id: UUID) -> Optional[Wallet]:
        result = await db.execute(
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, user_id: UUID) -> Wallet:
        wallet = await self.get(db, user_id)
        if wallet:
            return wallet

        db.add(Wallet(user_id=user_id, balance=0, total_earned=0, total_spent=0))
        try:
            await db.commit()
        except IntegrityError:
            # Кошелёк создан параллельным запросом
            await db.rollback()
        return await self.get(db, user_id)

    async def credit(
        self,
        db: AsyncSession,
        wallet_id: UUID,
        amount: int,
        *,
        type: TransactionType = TransactionType.CREDIT,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> int:
        """Зачислить монеты (без commit); возвращает новый баланс"""
        result = await db.execute(
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .values(
                balance=Wallet.balance + amount,
                total_earned=Wallet.total_earned + amount,
            )
            .returning(Wallet.balance)
            .execution_options(synchronize_session=False)
        )
        balance = result.scalar_one()
        db.add(WalletTransaction(
            wallet_id=wallet_id,
            type=type.value,
            amount=amount,
            description=description,
            reference_id=reference_id,
        ))
        return balance

    async def debit(
        self,
        db: AsyncSession,
        wallet_id: UUID,
        amount: int,
        *,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> Optional[int]:
        """Списать монеты, если хватает баланса (без commit).

        Возвращает новый баланс или None, если денег недостаточно.
        """
        result = await db.execute(
            update(Wallet)
            .where(Wallet.id == wallet_id, Wallet.balance >= amount)
            .values(
                balance=Wallet.balance - amount,
                total_spent=Wallet.total_spent + amount,
            )
            .returning(Wallet.balance)
            .execution_options(synchronize_session=False)
        )
        balance = result.scalar_one_or_none()
        if balance is None:
            return None

        db.add(WalletTransaction(
            wallet_id=wallet_id,
            type=TransactionType.DEBIT.value,
            amount=amount,
            description=description,
            reference_id=reference_id,
        ))
        return balance

    async def list_transactions(
        self, db: AsyncSession, user_id: UUID, page: int = 1, limit: int = 50
    ) -> Tuple[List[WalletTransaction], int]:
        wallet = await self.get(db, user_id)
        if wallet is None:
            return [], 0

        total = (
            await db.execute(
                select(func.count(WalletTransaction.id)).where(WalletTransaction.wallet_id == wallet.id)
            )
        ).scalar_one()
        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.wallet_id == wallet.id)
            .order_by(WalletTransaction.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total
