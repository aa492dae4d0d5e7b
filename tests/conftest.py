# tests/conftest.py
import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from shared.config import Config
from backend.src.database import create_session_factory, create_tables
from backend.src.main import create_app
from backend.src.services import build_services, InMemoryCache, ReviewSubmission
from backend.src.models import UserRole, Sentiment

from tests.helpers import FakeClock, MonotonicClock, Factory, RNG_SEED


@pytest.fixture
def settings():
    return Config(
        DATABASE_URL="sqlite+aiosqlite://",
        ANALYTICS_CACHE_BACKEND="memory",
        REVIEW_COOLDOWN_SECONDS=60,
        REPORT_FLAG_THRESHOLD=3,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_clock():
    return MonotonicClock()


@pytest.fixture
def services(settings, clock, cache_clock):
    cache = InMemoryCache(ttl=settings.ANALYTICS_CACHE_TTL, clock=cache_clock)
    return build_services(settings, clock=clock, rng=random.Random(RNG_SEED), cache=cache)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def factory(db, clock):
    return Factory(db, clock)


@pytest.fixture
async def admin(factory):
    return await factory.user(name="Admin Adminov", role=UserRole.ADMIN)


@pytest.fixture
def make_submission():
    def _make(order, **overrides):
        data = dict(
            order_id=order.id,
            sentiment=Sentiment.THUMBS_UP.value,
            rating=5,
            food_quality_rating=5,
            delivery_rating=5,
            review_text="Great pizza, arrived hot",
            photos=[],
            device_fingerprint="device-1",
            ip_address="10.0.0.1",
        )
        data.update(overrides)
        return ReviewSubmission(**data)
    return _make


@pytest.fixture
def submit_review(db, services, factory, make_submission):
    """Отзыв через полный пайплайн; возвращает (автор, результат)"""
    async def _submit(author=None, menu=None, **overrides):
        if author is None:
            author = await factory.user()
        order = await factory.order(author, menu)
        result = await services.reviews.submit(db, author, make_submission(order, **overrides))
        return author, result
    return _submit


@pytest.fixture
async def client(settings, services, engine):
    app = create_app(settings=settings, services=services, engine=engine)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
