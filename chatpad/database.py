from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from chatpad.config import settings

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, future=True)

async_session_maker = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Set to True to recreate all tables (WARNING: deletes all data)
RECREATE_TABLES = False

async def init_db():
    # Import models so they are registered with SQLModel metadata
    import chatpad.models  # noqa: F401

    async with engine.begin() as conn:
        if RECREATE_TABLES:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

async def get_session() -> AsyncSession:
    async with async_session_maker() as session:
        yield session
