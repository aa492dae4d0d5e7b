# backend/src/schemas/wallet.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from .base import BaseSchema


class WalletResponse(BaseSchema):
    user_id: UUID
    balance: int
    total_earned: int
    total_spent: int


class WalletTransactionResponse(BaseSchema):
    id: UUID
    type: str
    amount: int
    description: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: datetime


class TransactionListResponse(BaseSchema):
    transactions: List[WalletTransactionResponse]
    total: int
