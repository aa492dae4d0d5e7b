import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, JSON, ForeignKey, Uuid, case
)
from .base import Base, TimestampMixin
from .enums import ReviewerLevel

# Пороги уровней по очкам, от старшего к младшему
LEVEL_THRESHOLDS = (
    (1000, ReviewerLevel.ELITE),
    (500, ReviewerLevel.PLATINUM),
    (250, ReviewerLevel.GOLD),
    (100, ReviewerLevel.SILVER),
)
TRUSTED_LEVELS = {ReviewerLevel.GOLD.value, ReviewerLevel.PLATINUM.value, ReviewerLevel.ELITE.value}
MAX_TRACKED_ENTRIES = 10


def level_case(points_expr):
    """Уровень ревьюера по очкам в виде SQL-выражения для атомарных UPDATE"""
    return case(
        *[(points_expr >= threshold, level.value) for threshold, level in LEVEL_THRESHOLDS],
        else_=ReviewerLevel.BRONZE.value,
    )


class ReviewerProfile(Base, TimestampMixin):
    """Репутация ревьюера (создаётся при первом обращении)"""
    __tablename__ = "reviewer_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, unique=True)

    # Верификация
    verified_mobile = Column(Boolean, default=False, nullable=False)
    verified_email = Column(Boolean, default=False, nullable=False)

    # Статистика
    total_reviews = Column(Integer, default=0, nullable=False)
    total_orders = Column(Integer, default=0, nullable=False)
    helpful_reviews = Column(Integer, default=0, nullable=False)
    total_helpful_votes = Column(Integer, default=0, nullable=False)
    flagged_reviews = Column(Integer, default=0, nullable=False)
    last_review_date = Column(DateTime)

    # Репутация
    avg_trust_score = Column(Float, default=50.0, nullable=False)
    reviewer_level = Column(String(20), default=ReviewerLevel.BRONZE.value, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    total_coins_earned = Column(Integer, default=0, nullable=False)

    # Устройства и IP: [{"value", "first_seen", "last_seen", "review_count"}]
    devices = Column(JSON, default=list, nullable=False)
    ip_addresses = Column(JSON, default=list, nullable=False)

    # Бан
    is_banned = Column(Boolean, default=False, nullable=False)
    ban_reason = Column(Text)
    ban_expires_at = Column(DateTime)
    warning_count = Column(Integer, default=0, nullable=False)

    def account_age_days(self, now: datetime) -> int:
        if self.created_at is None:
            return 0
        return max((now - self.created_at).days, 0)

    def track_device(self, fingerprint: Optional[str], now: datetime) -> None:
        self.devices = _track(self.devices, fingerprint, now)

    def track_ip(self, ip: Optional[str], now: datetime) -> None:
        self.ip_addresses = _track(self.ip_addresses, ip, now)

    def ban(self, reason: str, expires_at: Optional[datetime]) -> None:
        self.is_banned = True
        self.ban_reason = reason
        self.ban_expires_at = expires_at

    def clear_ban(self) -> None:
        self.is_banned = False
        self.ban_reason = None
        self.ban_expires_at = None

    def ban_expired(self, now: datetime) -> bool:
        return bool(self.is_banned and self.ban_expires_at is not None and now > self.ban_expires_at)

    def __repr__(self):
        return f"<ReviewerProfile(user_id={self.user_id}, level={self.reviewer_level}, banned={self.is_banned})>"


def _track(entries: Optional[list], value: Optional[str], now: datetime) -> list:
    """Обновить кольцо последних значений (не больше MAX_TRACKED_ENTRIES)"""
    entries = [dict(e) for e in (entries or [])]
    if not value or value == "unknown":
        return entries

    stamp = now.isoformat()
    for entry in entries:
        if entry["value"] == value:
            entry["last_seen"] = stamp
            entry["review_count"] = entry.get("review_count", 0) + 1
            return entries

    entries.append({"value": value, "first_seen": stamp, "last_seen": stamp, "review_count": 1})
    return entries[-MAX_TRACKED_ENTRIES:]
