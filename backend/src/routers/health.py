# backend/src/routers/health.py
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from ..dependencies import get_db_session, get_services
from ..services import Services

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db_session),
    services: Services = Depends(get_services),
):
    """Проверка работоспособности сервиса"""
    db_ok = False
    try:
        await db.execute(select(1))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unavailable: {e}")

    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": services.reviews.clock().isoformat(),
        "database": "connected" if db_ok else "disconnected",
        "service": services.settings.APP_NAME,
    }
