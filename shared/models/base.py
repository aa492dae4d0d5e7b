from datetime import datetime, timezone
from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Текущее время в UTC без tzinfo (одинаково хранится в Postgres и SQLite)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Миксин для добавления временных меток"""
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
