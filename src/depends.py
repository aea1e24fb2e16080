from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.redis_queue import RedisMessageQueue, create_redis_client

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_message_queue():
    queue = RedisMessageQueue(
        create_redis_client(ApplicationConfig.REDIS_URL),
        prefix=ApplicationConfig.QUEUE_PREFIX,
    )
    try:
        yield queue
    finally:
        await queue.close()
