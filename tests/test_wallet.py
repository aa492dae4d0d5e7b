# tests/test_wallet.py
from backend.src.models import Wallet, TransactionType

from tests.helpers import reload


async def test_wallet_is_created_once(db, services, factory):
    user = await factory.user()

    first = await services.wallets.get_or_create(db, user.id)
    second = await services.wallets.get_or_create(db, user.id)

    assert first.id == second.id
    assert (first.balance, first.total_earned, first.total_spent) == (0, 0, 0)


async def test_credit_and_debit(db, services, factory):
    user = await factory.user()
    wallet = await services.wallets.get_or_create(db, user.id)

    balance = await services.wallets.credit(
        db, wallet.id, 40, type=TransactionType.REVIEW_REWARD, description="Reward", reference_id="r-1"
    )
    assert balance == 40
    assert await services.wallets.debit(db, wallet.id, 15, description="Order") == 25
    await db.commit()

    wallet = await reload(db, Wallet, user_id=user.id)
    assert (wallet.balance, wallet.total_earned, wallet.total_spent) == (25, 40, 15)
    transactions, total = await services.wallets.list_transactions(db, user.id)
    assert total == 2
    assert sorted(t.type for t in transactions) == ["debit", "review_reward"]


async def test_debit_never_goes_negative(db, services, factory):
    user = await factory.user()
    wallet = await services.wallets.get_or_create(db, user.id)
    await services.wallets.credit(db, wallet.id, 10)
    await db.commit()

    assert await services.wallets.debit(db, wallet.id, 11) is None
    await db.commit()

    wallet = await reload(db, Wallet, user_id=user.id)
    assert wallet.balance == 10
    _, total = await services.wallets.list_transactions(db, user.id)
    assert total == 1


async def test_transactions_of_user_without_wallet(db, services, factory):
    user = await factory.user()

    assert await services.wallets.list_transactions(db, user.id) == ([], 0)
