# backend/src/services/abuse.py
"""
Сигналы возможной накрутки. Ничего не блокируют, только пишутся в аудит.
"""

from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Review

UNKNOWN = "unknown"


async def collect_abuse_signals(
    db: AsyncSession,
    user_id: UUID,
    device_fingerprint: Optional[str],
    ip_address: Optional[str],
) -> Dict[str, int]:
    """Сколько других пользователей писали отзывы с того же устройства / IP"""
    signals = {"shared_device_accounts": 0, "shared_ip_accounts": 0}

    if device_fingerprint and device_fingerprint != UNKNOWN:
        result = await db.execute(
            select(func.count(func.distinct(Review.user_id))).where(
                Review.device_fingerprint == device_fingerprint,
                Review.user_id != user_id,
            )
        )
        signals["shared_device_accounts"] = result.scalar_one()

    if ip_address and ip_address != UNKNOWN:
        result = await db.execute(
            select(func.count(func.distinct(Review.user_id))).where(
                Review.ip_address == ip_address,
                Review.user_id != user_id,
            )
        )
        signals["shared_ip_accounts"] = result.scalar_one()

    return signals
