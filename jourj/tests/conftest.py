"""
Test fixtures - in-memory SQLite database, event store registry + authenticated HTTP client
"""
from contextlib import asynccontextmanager
from datetime import date, timedelta

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from jourj.database import Base, get_db
from jourj.main import app
from jourj.api.auth import get_password_hash, create_access_token
from jourj.models import User, Event, Person, Vendor
from jourj.services.event_store import EventRepository, EventStoreRegistry
from jourj.services.storage import LocalFileStorage, get_storage


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: user + one wedding with the couple and a photographer"""
    user = User(
        email="test@jourj.fr",
        full_name="Test User",
        hashed_password=get_password_hash("testpass123"),
        is_admin=True,
    )
    db_session.add(user)
    await db_session.flush()

    event = Event(
        name="Mariage Claire & Hugo",
        event_date=date.today() + timedelta(days=30),
        location="Château de Vaux",
        owner_id=user.id,
    )
    db_session.add(event)
    await db_session.flush()

    bride = Person(event_id=event.id, name="Claire", role="bride")
    groom = Person(event_id=event.id, name="Hugo", role="groom")
    photographer = Vendor(event_id=event.id, name="Studio Lumière", service_type="photographer")
    db_session.add_all([bride, groom, photographer])
    await db_session.commit()
    for row in (user, event, bride, groom, photographer):
        await db_session.refresh(row)

    return {"user": user, "event": event, "bride": bride, "groom": groom, "photographer": photographer}


@pytest_asyncio.fixture()
async def stores(db_session):
    """Store registry reading through the test session, background refresh off"""

    @asynccontextmanager
    async def shared_session():
        yield db_session

    registry = EventStoreRegistry(
        repository=EventRepository(session_factory=shared_session),
        refresh_interval=0,
    )
    app.state.stores = registry
    yield registry
    await registry.close_all()
    del app.state.stores


@pytest_asyncio.fixture()
async def storage(tmp_path):
    return LocalFileStorage(root=str(tmp_path / "uploads"), base_url="http://test")


@pytest_asyncio.fixture()
async def client(db_session, seed_data, stores, storage):
    """Authenticated httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    token = create_access_token(data={"sub": seed_data["user"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(db_session, stores):
    """Unauthenticated httpx AsyncClient"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
