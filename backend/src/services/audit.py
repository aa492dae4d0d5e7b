# backend/src/services/audit.py
"""
Журнал аудита: запись в той же транзакции, что и изменение, и поиск
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ReviewAuditLog, AuditAction, ActorRole


class AuditService:

    def record(
        self,
        db: AsyncSession,
        action: AuditAction,
        *,
        review_id: Optional[UUID],
        performed_by_id: Optional[UUID],
        performed_by_role: ActorRole,
        subject_user_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
    ) -> ReviewAuditLog:
        """Добавить запись в сессию; commit делает вызывающий код"""
        entry = ReviewAuditLog(
            review_id=review_id,
            subject_user_id=subject_user_id,
            action_type=action.value,
            performed_by_id=performed_by_id,
            performed_by_role=performed_by_role.value,
            details=details or {},
            ip_address=ip_address,
            device_fingerprint=device_fingerprint,
        )
        db.add(entry)
        return entry

    async def history(self, db: AsyncSession, review_id: UUID) -> List[ReviewAuditLog]:
        result = await db.execute(
            select(ReviewAuditLog)
            .where(ReviewAuditLog.review_id == review_id)
            .order_by(ReviewAuditLog.created_at.asc())
        )
        return list(result.scalars().all())

    async def search(
        self,
        db: AsyncSession,
        *,
        review_id: Optional[UUID] = None,
        action_type: Optional[AuditAction] = None,
        performed_by_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[ReviewAuditLog], int]:
        """Поиск по журналу с пагинацией, новые записи первыми"""
        filters = []
        if review_id:
            filters.append(ReviewAuditLog.review_id == review_id)
        if action_type:
            filters.append(ReviewAuditLog.action_type == action_type.value)
        if performed_by_id:
            filters.append(ReviewAuditLog.performed_by_id == performed_by_id)

        total = (
            await db.execute(select(func.count(ReviewAuditLog.id)).where(*filters))
        ).scalar_one()

        result = await db.execute(
            select(ReviewAuditLog)
            .where(*filters)
            .order_by(ReviewAuditLog.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total
