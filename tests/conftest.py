"""Shared fixtures: an in-memory SQLite database and an ASGI test client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from liftplan.db.database import get_db, init_db
from liftplan.main import create_app
from liftplan.models import ProgramTemplate, ProgramVersion
from liftplan.models.enums import ProgramType, Visibility


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    app = create_app()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_version(db):
    """Factory persisting a public template with a single version."""

    async def _make(definition: dict, defaults: dict | None = None, slug: str = "wendler-531") -> ProgramVersion:
        template = ProgramTemplate(
            slug=slug,
            name=slug.replace("-", " ").title(),
            type=ProgramType.MANUAL if definition.get("kind") == "manual" else ProgramType.LOGIC,
            visibility=Visibility.PUBLIC,
            tags=[],
        )
        db.add(template)
        await db.flush()
        version = ProgramVersion(
            template=template,
            version=1,
            definition=definition,
            defaults=defaults or {},
        )
        db.add(version)
        await db.flush()
        return version

    return _make
