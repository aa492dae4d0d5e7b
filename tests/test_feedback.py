# tests/test_feedback.py
import uuid

import pytest

from backend.src.exceptions import ValidationFailed, NotFound, Forbidden, StateConflict
from backend.src.models import Review, ReviewAuditLog, ReviewerProfile, UserRole

from tests.helpers import reload, reload_all

REASON = "Looks like a paid review"


async def test_helpful_vote_updates_counts_and_author_points(db, services, factory, submit_review):
    author, result = await submit_review()
    voter = await factory.user(name="Anna Smirnova")

    counts = await services.feedback.mark_helpful(db, result.review_id, voter.id, True)

    assert counts == {"helpful_count": 1, "not_helpful_count": 0}
    profile = await reload(db, ReviewerProfile, user_id=author.id)
    assert profile.helpful_reviews == 1
    assert profile.total_helpful_votes == 1
    assert profile.total_points == 11


async def test_not_helpful_vote_leaves_author_points(db, services, factory, submit_review):
    author, result = await submit_review()
    voter = await factory.user(name="Anna Smirnova")

    counts = await services.feedback.mark_helpful(db, result.review_id, voter.id, False)

    assert counts == {"helpful_count": 0, "not_helpful_count": 1}
    profile = await reload(db, ReviewerProfile, user_id=author.id)
    assert profile.total_points == 10


async def test_one_vote_per_user(db, services, factory, submit_review):
    _, result = await submit_review()
    voter = await factory.user(name="Anna Smirnova")
    await services.feedback.mark_helpful(db, result.review_id, voter.id, True)

    with pytest.raises(StateConflict) as exc:
        await services.feedback.mark_helpful(db, result.review_id, voter.id, False)
    assert exc.value.reason == "already_rated"

    review = await reload(db, Review, id=result.review_id)
    assert (review.helpful_count, review.not_helpful_count) == (1, 0)


async def test_vote_on_missing_review(db, services, factory):
    voter = await factory.user()
    with pytest.raises(NotFound) as exc:
        await services.feedback.mark_helpful(db, uuid.uuid4(), voter.id, True)
    assert exc.value.reason == "review_not_found"


@pytest.mark.parametrize("reason", ["", "   ", "spam", "too short"])
async def test_report_requires_reason(db, services, factory, submit_review, reason):
    _, result = await submit_review()
    reporter = await factory.user(name="Anna Smirnova")

    with pytest.raises(ValidationFailed) as exc:
        await services.feedback.report(db, result.review_id, reporter.id, reason)
    assert exc.value.reason == "invalid_reason"


async def test_reports_flag_review_once(db, services, factory, submit_review):
    _, result = await submit_review()
    reporters = [await factory.user(name=f"Reporter {i}") for i in range(4)]

    outcomes = [
        await services.feedback.report(db, result.review_id, reporter.id, REASON)
        for reporter in reporters
    ]

    assert [o["report_count"] for o in outcomes] == [1, 2, 3, 4]
    assert [o["status"] for o in outcomes] == ["active", "active", "flagged", "flagged"]

    flagged = await reload_all(db, ReviewAuditLog, review_id=result.review_id, action_type="flagged")
    assert len(flagged) == 1
    assert flagged[0].performed_by_id is None
    assert flagged[0].performed_by_role == "system"
    assert flagged[0].details == {"auto_flagged": True, "report_count": 3}


async def test_report_does_not_reflag_hidden_review(db, services, factory, submit_review, admin):
    _, result = await submit_review()
    await services.moderation.hide(db, result.review_id, admin, "Offensive language")

    for i in range(3):
        reporter = await factory.user(name=f"Reporter {i}")
        outcome = await services.feedback.report(db, result.review_id, reporter.id, REASON)

    assert outcome == {"report_count": 3, "status": "hidden"}
    assert await reload_all(db, ReviewAuditLog, review_id=result.review_id, action_type="flagged") == []


async def test_one_report_per_user(db, services, factory, submit_review):
    _, result = await submit_review()
    reporter = await factory.user(name="Anna Smirnova")
    await services.feedback.report(db, result.review_id, reporter.id, REASON)

    with pytest.raises(StateConflict) as exc:
        await services.feedback.report(db, result.review_id, reporter.id, REASON)
    assert exc.value.reason == "already_reported"


async def test_owner_responds_once(db, services, factory, submit_review, clock):
    owner = await factory.user(name="Owner Restaurant", role=UserRole.RESTAURANT)
    menu = await factory.restaurant(owner)
    author, result = await submit_review(menu=menu)

    review = await services.feedback.respond(db, result.review_id, owner, "  Thank you!  ")

    assert review.response_text == "Thank you!"
    assert review.responded_by == owner.id
    assert review.responded_at == clock()
    [entry] = await reload_all(db, ReviewAuditLog, review_id=result.review_id, action_type="responded")
    assert entry.performed_by_role == "restaurant"
    assert entry.subject_user_id == author.id

    with pytest.raises(StateConflict) as exc:
        await services.feedback.respond(db, result.review_id, owner, "Second answer")
    assert exc.value.reason == "already_responded"
    review = await reload(db, Review, id=result.review_id)
    assert review.response_text == "Thank you!"


async def test_admin_may_respond(db, services, submit_review, admin):
    _, result = await submit_review()

    review = await services.feedback.respond(db, result.review_id, admin, "We are looking into it")

    assert review.responded_by == admin.id
    [entry] = await reload_all(db, ReviewAuditLog, review_id=result.review_id, action_type="responded")
    assert entry.performed_by_role == "admin"


async def test_other_restaurant_cannot_respond(db, services, factory, submit_review):
    _, result = await submit_review()
    stranger = await factory.user(name="Other Owner", role=UserRole.RESTAURANT)

    with pytest.raises(Forbidden):
        await services.feedback.respond(db, result.review_id, stranger, "Not my review")

    author_as_caller = await factory.user()
    with pytest.raises(Forbidden):
        await services.feedback.respond(db, result.review_id, author_as_caller, "Hello")


@pytest.mark.parametrize("text", ["", "   ", "x" * 1001])
async def test_response_length_is_checked(db, services, submit_review, admin, text):
    _, result = await submit_review()

    with pytest.raises(ValidationFailed) as exc:
        await services.feedback.respond(db, result.review_id, admin, text)
    assert exc.value.reason == "invalid_response"
