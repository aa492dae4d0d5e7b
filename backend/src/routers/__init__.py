# backend/src/routers/__init__.py
"""
FastAPI роутеры
"""

from .reviews import router as reviews_router
from .moderation import router as moderation_router
from .wallets import router as wallets_router
from .health import router as health_router

__all__ = [
    'reviews_router',
    'moderation_router',
    'wallets_router',
    'health_router',
]
