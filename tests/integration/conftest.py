import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_message_queue, get_session
from src.domain.business_credential import BusinessPaymentCredential  # noqa: F401
from src.domain.invoice import Invoice  # noqa: F401
from tests.fakes import InMemoryMessageQueue


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create test database engine on a throwaway SQLite file"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'invoices_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def queue():
    return InMemoryMessageQueue()


@pytest_asyncio.fixture
async def app(session_factory, queue):
    """Application with database session and message queue overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # One session per request, like the production dependency
    async def override_get_session():
        async with session_factory() as session:
            yield session

    async def override_get_message_queue():
        yield queue

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_message_queue] = override_get_message_queue
    return app


@pytest_asyncio.fixture
async def client(app):
    """Create test client against the overridden app"""
    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
