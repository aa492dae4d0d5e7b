# backend/src/routers/wallets.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from ..dependencies import get_db_session, get_services, require_capability
from ..models import User
from ..policies import Capability
from ..schemas.wallet import WalletResponse, WalletTransactionResponse, TransactionListResponse
from ..services import Services

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(require_capability(Capability.VIEW_WALLET)),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Кошелёк текущего пользователя (создаётся при первом запросе)"""
    wallet = await services.wallets.get_or_create(db, current_user.id)
    return WalletResponse.model_validate(wallet)


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_capability(Capability.VIEW_WALLET)),
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """История операций, новые первыми"""
    transactions, total = await services.wallets.list_transactions(db, current_user.id, page, limit)
    return TransactionListResponse(
        transactions=[WalletTransactionResponse.model_validate(t) for t in transactions],
        total=total,
    )
