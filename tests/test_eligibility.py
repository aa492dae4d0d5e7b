# tests/test_eligibility.py
import uuid
from datetime import timedelta

from backend.src.models import OrderStatus, Review, ReviewerProfile, ReviewAuditLog

from tests.helpers import reload, reload_all


async def test_unknown_order(db, services, factory):
    user = await factory.user()
    result = await services.eligibility.check(db, uuid.uuid4(), user.id)
    assert not result.eligible
    assert result.reason == "not_found"


async def test_someone_elses_order(db, services, factory):
    owner = await factory.user()
    stranger = await factory.user(name="Petr Sidorov")
    order = await factory.order(owner)

    result = await services.eligibility.check(db, order.id, stranger.id)
    assert result.reason == "forbidden"


async def test_order_not_delivered(db, services, factory):
    user = await factory.user()
    order = await factory.order(user, status=OrderStatus.PREPARING)

    result = await services.eligibility.check(db, order.id, user.id)
    assert result.reason == "order_not_delivered"


async def test_cooldown_after_delivery(db, services, factory, clock):
    """Отзыв можно оставить только через минуту после доставки"""
    user = await factory.user()
    order = await factory.order(user, delivered_ago=timedelta(0))

    clock.advance(seconds=30)
    result = await services.eligibility.check(db, order.id, user.id)
    assert result.eligible is False
    assert result.reason == "too_soon"
    assert result.extra["seconds_remaining"] == 30

    clock.advance(seconds=0.5)
    result = await services.eligibility.check(db, order.id, user.id)
    assert result.extra["seconds_remaining"] == 30

    clock.advance(seconds=31)
    result = await services.eligibility.check(db, order.id, user.id)
    assert result.eligible is True
    assert result.extra == {"reward_range": "1-100"}


async def test_delivery_time_falls_back_to_updated_at(db, services, factory, clock):
    user = await factory.user()
    order = await factory.order(user, delivered_ago=None)
    order.updated_at = clock() - timedelta(seconds=10)
    await db.commit()

    result = await services.eligibility.check(db, order.id, user.id)
    assert result.reason == "too_soon"
    assert result.extra["seconds_remaining"] == 50


async def test_active_ban_blocks_review(db, services, factory, clock):
    user = await factory.user()
    order = await factory.order(user)
    profile = await services.profiles.get_or_create(db, user, clock())
    profile.ban("Posting fake reviews repeatedly", clock() + timedelta(days=3))
    await db.commit()

    result = await services.eligibility.check(db, order.id, user.id)
    assert result.reason == "banned"
    assert result.extra["ban_expires_at"] == (clock() + timedelta(days=3)).isoformat()


async def test_expired_ban_is_lifted_and_persisted(db, services, factory, clock, session_factory):
    user = await factory.user()
    order = await factory.order(user)
    profile = await services.profiles.get_or_create(db, user, clock())
    profile.ban("Posting fake reviews repeatedly", clock() - timedelta(minutes=1))
    await db.commit()

    result = await services.eligibility.check(db, order.id, user.id)
    assert result.eligible is True

    async with session_factory() as fresh:
        stored = await reload(fresh, ReviewerProfile, user_id=user.id)
        assert stored.is_banned is False
        assert stored.ban_reason is None
        assert stored.ban_expires_at is None

        [entry] = await reload_all(fresh, ReviewAuditLog, subject_user_id=user.id)
        assert entry.action_type == "unbanned"
        assert entry.review_id is None
        assert entry.performed_by_id is None
        assert entry.performed_by_role == "system"
        assert entry.details == {
            "auto": True,
            "expired_at": (clock() - timedelta(minutes=1)).isoformat(),
        }


async def test_fresh_ban_survives_expired_ban_cleanup(
    db, services, factory, clock, session_factory, admin, monkeypatch
):
    """Админ банит заново между чтением профиля и снятием истёкшего бана"""
    user = await factory.user()
    user_id = user.id
    order = await factory.order(user)
    profile = await services.profiles.get_or_create(db, user, clock())
    profile.ban("Posting fake reviews repeatedly", clock() - timedelta(minutes=1))
    await db.commit()

    read_profile = services.profiles.get
    rebanned = []

    async def read_then_reban(session, requested_user_id):
        stale = await read_profile(session, requested_user_id)
        if not rebanned:
            rebanned.append(requested_user_id)
            async with session_factory() as admin_session:
                await services.moderation.ban_reviewer(
                    admin_session, requested_user_id, admin, "Caught posting fake reviews again", duration_days=30
                )
        return stale

    monkeypatch.setattr(services.profiles, "get", read_then_reban)

    result = await services.eligibility.check(db, order.id, user_id)

    assert result.eligible is False
    assert result.reason == "banned"
    assert result.extra["ban_expires_at"] == (clock() + timedelta(days=30)).isoformat()

    async with session_factory() as fresh:
        stored = await reload(fresh, ReviewerProfile, user_id=user_id)
        assert stored.is_banned is True
        assert stored.ban_reason == "Caught posting fake reviews again"
        assert stored.ban_expires_at == clock() + timedelta(days=30)
        entries = await reload_all(fresh, ReviewAuditLog, subject_user_id=user_id)
        assert [e.action_type for e in entries] == ["banned"]


async def test_unverified_mobile(db, services, factory):
    user = await factory.user(verified=False)
    order = await factory.order(user)

    result = await services.eligibility.check(db, order.id, user.id)
    assert result.reason == "mobile_not_verified"


async def test_checks_run_in_order(db, services, factory, submit_review, clock):
    """Уже оставленный отзыв важнее, чем бан и верификация"""
    author, result = await submit_review()
    review = await reload(db, Review, id=result.review_id)

    profile = await services.profiles.get(db, author.id)
    profile.ban("Posting fake reviews repeatedly", clock() + timedelta(days=3))
    await db.commit()

    check = await services.eligibility.check(db, review.order_id, author.id)
    assert check.reason == "already_reviewed"
