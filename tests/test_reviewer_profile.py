# tests/test_reviewer_profile.py
from datetime import datetime, timedelta

import pytest
from sqlalchemy import literal, select

from backend.src.models import ReviewerProfile, level_case
from shared.models.reviewer_profile import MAX_TRACKED_ENTRIES

NOW = datetime(2024, 5, 1, 12, 0, 0)


@pytest.mark.parametrize("points, level", [
    (-30, "bronze"),
    (0, "bronze"),
    (99, "bronze"),
    (100, "silver"),
    (249, "silver"),
    (250, "gold"),
    (500, "platinum"),
    (999, "platinum"),
    (1000, "elite"),
])
async def test_level_thresholds(db, points, level):
    assert await db.scalar(select(level_case(literal(points)))) == level


def test_device_ring_keeps_last_ten_entries():
    profile = ReviewerProfile(devices=[])
    for i in range(MAX_TRACKED_ENTRIES + 2):
        profile.track_device(f"device-{i}", NOW + timedelta(minutes=i))

    values = [entry["value"] for entry in profile.devices]
    assert len(values) == MAX_TRACKED_ENTRIES
    assert values[0] == "device-2"
    assert values[-1] == f"device-{MAX_TRACKED_ENTRIES + 1}"


def test_repeated_device_updates_existing_entry():
    profile = ReviewerProfile(devices=[])
    profile.track_device("phone", NOW)
    profile.track_device("phone", NOW + timedelta(days=1))

    assert len(profile.devices) == 1
    entry = profile.devices[0]
    assert entry["review_count"] == 2
    assert entry["first_seen"] == NOW.isoformat()
    assert entry["last_seen"] == (NOW + timedelta(days=1)).isoformat()


def test_unknown_ip_is_not_tracked():
    profile = ReviewerProfile(ip_addresses=[])
    profile.track_ip("unknown", NOW)
    profile.track_ip(None, NOW)
    assert profile.ip_addresses == []


def test_ban_expiry():
    profile = ReviewerProfile(is_banned=False)
    profile.ban("Spam reviews from several accounts", NOW + timedelta(days=1))

    assert not profile.ban_expired(NOW)
    assert profile.ban_expired(NOW + timedelta(days=2))

    profile.clear_ban()
    assert profile.is_banned is False
    assert profile.ban_reason is None
    assert profile.ban_expires_at is None


def test_account_age_days():
    profile = ReviewerProfile(created_at=NOW - timedelta(days=100, hours=5))
    assert profile.account_age_days(NOW) == 100
    assert ReviewerProfile().account_age_days(NOW) == 0
