# tests/test_submission.py
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from backend.src.exceptions import ValidationFailed, NotFound, Forbidden, StateConflict
from backend.src.models import (
    Review, ReviewReward, ReviewAuditLog, ReviewerProfile, Wallet, WalletTransaction, ReviewSort,
)
from backend.src.services.eligibility import EligibilityResult

from tests.helpers import expected_rewards, reload, reload_all


async def test_submit_review_full_pipeline(db, services, factory, make_submission, session_factory):
    user = await factory.user()
    order = await factory.order(user)
    [coins] = expected_rewards(1)

    result = await services.reviews.submit(db, user, make_submission(order))

    # новый профиль: 1 заказ (+2), телефон и почта (+10), короткий текст
    assert result.trust_score == 62
    assert result.labels == ["verified_order", "first_review"]
    assert result.coins_rewarded == coins
    assert result.wallet_balance == coins
    assert result.reward_pending is False

    async with session_factory() as fresh:
        review = await reload(fresh, Review, id=result.review_id)
        assert review.status == "active"
        assert review.coins_rewarded == coins
        assert review.reward_seed is not None

        reward = await reload(fresh, ReviewReward, review_id=review.id)
        assert reward.status == "credited"
        assert reward.coins_amount == reward.rupees_value == coins
        assert reward.meta["random_seed"] == str(review.reward_seed)
        assert (reward.expires_at - reward.created_at).days == 90

        wallet = await reload(fresh, Wallet, user_id=user.id)
        assert wallet.balance == wallet.total_earned == coins
        [tx] = await reload_all(fresh, WalletTransaction, wallet_id=wallet.id)
        assert tx.type == "review_reward"
        assert tx.amount == coins
        assert tx.reference_id == str(review.id)
        assert tx.description == f"Review reward for order #{str(order.id)[-8:]}"

        [entry] = await reload_all(fresh, ReviewAuditLog, review_id=review.id)
        assert entry.action_type == "created"
        assert entry.performed_by_role == "user"
        assert entry.details["coins_rewarded"] == coins
        assert entry.details["abuse_signals"] == {"shared_device_accounts": 0, "shared_ip_accounts": 0}

        profile = await reload(fresh, ReviewerProfile, user_id=user.id)
        assert profile.total_reviews == 1
        assert profile.total_orders == 1
        assert profile.total_points == 10
        assert profile.total_coins_earned == coins
        assert profile.avg_trust_score == pytest.approx(62.0)
        assert [d["value"] for d in profile.devices] == ["device-1"]
        assert [i["value"] for i in profile.ip_addresses] == ["10.0.0.1"]


async def test_second_submission_for_same_order_is_rejected(db, services, factory, make_submission):
    user = await factory.user()
    order = await factory.order(user)
    await services.reviews.submit(db, user, make_submission(order))

    with pytest.raises(StateConflict) as exc:
        await services.reviews.submit(db, user, make_submission(order))
    assert exc.value.reason == "already_reviewed"
    assert len(await reload_all(db, Review, order_id=order.id)) == 1


async def test_concurrent_duplicate_loses_on_unique_constraint(db, services, factory, make_submission, monkeypatch):
    """Обе заявки прошли проверку допуска; побеждает только одна"""
    user = await factory.user()
    order = await factory.order(user)
    user_id, order_id = user.id, order.id

    async def always_eligible(session, requested_order_id, caller_id):
        return EligibilityResult(True, "ok", order=order, user=user)

    monkeypatch.setattr(services.reviews.gate, "check", always_eligible)

    first = await services.reviews.submit(db, user, make_submission(order))
    with pytest.raises(StateConflict) as exc:
        await services.reviews.submit(db, user, make_submission(order))

    assert exc.value.reason == "already_reviewed"
    [review] = await reload_all(db, Review, order_id=order_id)
    assert review.id == first.review_id
    wallet = await reload(db, Wallet, user_id=user_id)
    assert wallet.balance == first.coins_rewarded
    assert len(await reload_all(db, ReviewReward)) == 1


async def test_rewards_follow_seeded_generator(db, services, factory, make_submission):
    user = await factory.user()
    menu = await factory.restaurant()
    amounts = []
    for _ in range(3):
        order = await factory.order(user, menu)
        amounts.append((await services.reviews.submit(db, user, make_submission(order))).coins_rewarded)

    assert amounts == expected_rewards(3)
    assert all(1 <= a <= 100 for a in amounts)
    wallet = await reload(db, Wallet, user_id=user.id)
    assert wallet.balance == sum(amounts)


@pytest.mark.parametrize("overrides, reason", [
    ({"sentiment": "meh"}, "invalid_sentiment"),
    ({"rating": 6}, "invalid_rating"),
    ({"delivery_rating": 0}, "invalid_rating"),
    ({"review_text": "   "}, "text_too_short"),
    ({"review_text": "x" * 2001}, "text_too_long"),
    ({"photos": [f"p{i}.jpg" for i in range(11)]}, "too_many_photos"),
])
async def test_invalid_input_rejected_before_any_lookup(db, services, factory, make_submission, overrides, reason):
    user = await factory.user()

    class MissingOrder:
        id = uuid.uuid4()

    with pytest.raises(ValidationFailed) as exc:
        await services.reviews.submit(db, user, make_submission(MissingOrder, **overrides))
    assert exc.value.reason == reason


async def test_gate_failures_surface_as_errors(db, services, factory, make_submission):
    user = await factory.user()
    stranger = await factory.user(name="Oleg")
    order = await factory.order(user)

    class MissingOrder:
        id = uuid.uuid4()

    with pytest.raises(NotFound) as exc:
        await services.reviews.submit(db, user, make_submission(MissingOrder))
    assert exc.value.reason == "not_found"

    with pytest.raises(Forbidden):
        await services.reviews.submit(db, stranger, make_submission(order))


async def test_restaurant_must_be_resolvable(db, services, factory, make_submission):
    user = await factory.user()
    order = await factory.order(user, with_items=False)

    with pytest.raises(NotFound) as exc:
        await services.reviews.submit(db, user, make_submission(order))
    assert exc.value.reason == "restaurant_not_found"
    assert await reload_all(db, Review) == []


async def test_points_for_photos_and_long_text(db, services, factory, make_submission):
    user = await factory.user()
    order = await factory.order(user)

    await services.reviews.submit(
        db, user, make_submission(order, photos=["a.jpg"], review_text="delicious " * 25)
    )

    profile = await reload(db, ReviewerProfile, user_id=user.id)
    assert profile.total_points == 18


async def test_wallet_failure_leaves_reward_pending_until_reconciled(
    db, services, factory, make_submission, monkeypatch, admin
):
    user = await factory.user()
    order = await factory.order(user)
    user_id = user.id

    async def broken_credit(*args, **kwargs):
        raise OperationalError("UPDATE wallets", {}, Exception("wallet store unavailable"))

    monkeypatch.setattr(services.wallets, "credit", broken_credit)
    result = await services.reviews.submit(db, user, make_submission(order))

    assert result.reward_pending is True
    assert result.wallet_balance is None
    review = await reload(db, Review, id=result.review_id)
    assert review.status == "active"
    reward = await reload(db, ReviewReward, review_id=review.id)
    assert reward.status == "failed"
    assert (await reload(db, Wallet, user_id=user_id)).balance == 0

    monkeypatch.undo()
    assert await services.moderation.reconcile_rewards(db) == 1

    reward = await reload(db, ReviewReward, review_id=review.id)
    assert reward.status == "credited"
    assert (await reload(db, Wallet, user_id=user_id)).balance == result.coins_rewarded
    assert await services.moderation.reconcile_rewards(db) == 0


async def test_abuse_signals_count_other_accounts_on_same_device(db, services, factory, make_submission):
    menu = await factory.restaurant()
    first = await factory.user(name="Anna")
    second = await factory.user(name="Boris")
    await services.reviews.submit(db, first, make_submission(await factory.order(first, menu)))

    result = await services.reviews.submit(db, second, make_submission(await factory.order(second, menu)))

    [entry] = await reload_all(db, ReviewAuditLog, review_id=result.review_id)
    assert entry.details["abuse_signals"] == {"shared_device_accounts": 1, "shared_ip_accounts": 1}


async def test_restaurant_listing_sorts_and_filters(db, services, factory, submit_review, admin):
    menu = await factory.restaurant()
    _, low = await submit_review(menu=menu, rating=2)
    _, high = await submit_review(menu=menu, rating=5)
    _, hidden = await submit_review(menu=menu, rating=4)
    await services.moderation.hide(db, hidden.review_id, admin, "Offensive language")

    rows = await services.reviews.list_for_restaurant(db, menu.restaurant_id, ReviewSort.RATING_HIGH)
    assert [row["review"].id for row in rows] == [high.review_id, low.review_id]
    assert rows[0]["author_name"] == "Ivan P."
    assert rows[0]["reviewer_level"] == "bronze"

    rows = await services.reviews.list_for_restaurant(db, menu.restaurant_id, ReviewSort.RATING_LOW)
    assert [row["review"].id for row in rows] == [low.review_id, high.review_id]

    assert await services.reviews.list_for_restaurant(db, menu.restaurant_id, min_trust_score=63) == []
